"""
Retries for shop API calls
==========================
Connection errors, timeouts, 429 and 5xx answers are retried with
exponential backoff; anything else goes straight back to the caller.

Usage:
    policy = RetryPolicy(attempts=4, first_delay=0.5)

    @retrying(policy)
    def fetch(url):
        return session.get(url, timeout=10)

    response = fetch(url)   # last response is returned when a 5xx persists
"""
import time
import random
import logging
import functools
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type

import requests

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


@dataclass
class RetryPolicy:
    """
    Attributes:
        attempts: total calls, first one included
        first_delay: wait before the second call, in seconds
        max_delay: ceiling for any single wait
        factor: growth of the wait between calls
        jitter: spread each wait by up to 25%
    """
    attempts: int = 3
    first_delay: float = 1.0
    max_delay: float = 30.0
    factor: float = 2.0
    jitter: bool = True
    errors: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS
    statuses: Tuple[int, ...] = field(default=(429, 500, 502, 503, 504))

    def delay_for(self, attempt: int) -> float:
        """Wait after the given (1-based) failed attempt"""
        delay = min(self.first_delay * self.factor ** (attempt - 1), self.max_delay)
        if self.jitter:
            delay *= random.uniform(0.75, 1.25)
        return max(delay, 0.1)

    def wants_retry(self, response) -> bool:
        return getattr(response, "status_code", None) in self.statuses


DEFAULT_POLICY = RetryPolicy()


def retrying(policy: Optional[RetryPolicy] = None, on_retry: Optional[Callable[[int, str], None]] = None):
    """
    Decorator applying a RetryPolicy

    Args:
        policy: RetryPolicy, DEFAULT_POLICY when omitted
        on_retry: called with (attempt, reason) before each wait
    """
    policy = policy or DEFAULT_POLICY

    def decorate(call: Callable) -> Callable:
        @functools.wraps(call)
        def attempt_call(*args, **kwargs):
            attempt = 1
            while True:
                try:
                    response = call(*args, **kwargs)
                except policy.errors as e:
                    if attempt >= policy.attempts:
                        logger.error(f"Giving up after {attempt} attempts: {type(e).__name__}: {e}")
                        raise
                    reason = type(e).__name__
                else:
                    if attempt >= policy.attempts or not policy.wants_retry(response):
                        return response
                    reason = f"HTTP {response.status_code}"

                delay = policy.delay_for(attempt)
                logger.warning(f"{reason}, attempt {attempt}/{policy.attempts}, next in {delay:.2f}s")
                if on_retry is not None:
                    on_retry(attempt, reason)
                time.sleep(delay)
                attempt += 1

        return attempt_call
    return decorate
