"""
Sync run log
============
Counts what one reconciliation run did with each WooCommerce order and,
when a report directory is configured, leaves a JSON report behind.

Usage:
    run_log = SyncRunLog("orders", report_dir=Path("logs/sync"))
    run_log.imported(1234, articles=3)
    run_log.skipped(1200, "already present")
    run_log.failed(1235, "line item without id")
    report = run_log.close()       # SyncReport, written to logs/sync/orders-*.json

    recent_reports(Path("logs/sync"), "orders", limit=5)
"""
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

REPORT_TIME_FORMAT = "%Y%m%dT%H%M%S%f"


@dataclass
class OrderFailure:
    order_id: Optional[str]
    error: str
    at: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class SyncReport:
    """What a finished run did"""
    run_type: str
    started_at: str
    finished_at: str
    duration_seconds: float
    orders_seen: int
    orders_imported: int
    orders_skipped: int
    orders_failed: int
    articles_inserted: int
    failures: List[Dict[str, Any]] = field(default_factory=list)


class SyncRunLog:
    """
    Per-run order outcomes

    Attributes:
        run_type: report file prefix ("orders", "import")
        report_dir: where close() writes the JSON report, None for no report
        keep_failures: failures kept in the report (all are counted)
    """

    def __init__(self, run_type: str, report_dir: Optional[Path] = None, keep_failures: int = 500):
        self.run_type = run_type
        self.report_dir = Path(report_dir) if report_dir else None
        self.keep_failures = keep_failures
        self.started_at = datetime.now()
        self.finished_at: Optional[datetime] = None

        self.orders_imported = 0
        self.orders_skipped = 0
        self.orders_failed = 0
        self.articles_inserted = 0
        self._failures: List[OrderFailure] = []

    @property
    def orders_seen(self) -> int:
        return self.orders_imported + self.orders_skipped + self.orders_failed

    def imported(self, order_id: Any, articles: int = 0):
        self.orders_imported += 1
        self.articles_inserted += articles
        logger.debug(f"[{self.run_type}] order {order_id}: {articles} articles")

    def skipped(self, order_id: Any, reason: str = ""):
        self.orders_skipped += 1
        logger.debug(f"[{self.run_type}] order {order_id} skipped ({reason})")

    def failed(self, order_id: Any, error: str, details: Optional[Dict[str, Any]] = None):
        self.orders_failed += 1
        if len(self._failures) >= self.keep_failures:
            return
        self._failures.append(OrderFailure(
            order_id=None if order_id is None else str(order_id),
            error=str(error)[:500],
            at=datetime.now().isoformat(),
            details=details,
        ))

    def counters(self) -> Dict[str, int]:
        """Running totals, usable before close()"""
        return {
            "orders_seen": self.orders_seen,
            "orders_imported": self.orders_imported,
            "orders_skipped": self.orders_skipped,
            "orders_failed": self.orders_failed,
            "articles_inserted": self.articles_inserted,
        }

    def close(self, write_report: bool = True) -> SyncReport:
        """Finish the run; writes the report when a directory is set"""
        self.finished_at = datetime.now()
        elapsed = (self.finished_at - self.started_at).total_seconds()
        report = SyncReport(
            run_type=self.run_type,
            started_at=self.started_at.isoformat(),
            finished_at=self.finished_at.isoformat(),
            duration_seconds=round(elapsed, 2),
            failures=[asdict(f) for f in self._failures],
            **self.counters(),
        )

        logger.info(
            f"[{self.run_type}] {report.orders_seen} orders: "
            f"{report.orders_imported} imported ({report.articles_inserted} articles), "
            f"{report.orders_skipped} skipped, {report.orders_failed} failed in {elapsed:.1f}s"
        )
        if write_report and self.report_dir is not None:
            self._write(report)
        return report

    def _write(self, report: SyncReport):
        path = self.report_dir / f"{self.run_type}-{self.started_at.strftime(REPORT_TIME_FORMAT)}.json"
        try:
            self.report_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(asdict(report), ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Sync report not written ({path}): {e}")
            return
        logger.info(f"Sync report: {path}")


def read_report(path: Path) -> Optional[SyncReport]:
    """Report from disk, None when missing or malformed"""
    try:
        return SyncReport(**json.loads(Path(path).read_text(encoding="utf-8")))
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Sync report unreadable ({path}): {e}")
        return None


def recent_reports(report_dir: Path, run_type: Optional[str] = None, limit: int = 10) -> List[Path]:
    """Newest report files first"""
    report_dir = Path(report_dir)
    if not report_dir.is_dir():
        return []
    files = report_dir.glob(f"{run_type}-*.json" if run_type else "*-*.json")
    return sorted(files, key=lambda p: p.stem.rsplit("-", 1)[-1], reverse=True)[:limit]
