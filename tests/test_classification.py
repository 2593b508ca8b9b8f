"""
classification.py tests
=======================
Keyword classifier and the module-level classify()
"""
import pytest

from atelier.services.classification import KeywordClassifier, classify


class TestClassify:
    """Default keyword set"""

    def test_knitted_keyword(self):
        assert classify("Pull tricoté main") == "maille"

    def test_no_keyword(self):
        assert classify("Chemise en lin") == "couture"

    def test_empty_and_none(self):
        assert classify("") == "couture"
        assert classify(None) == "couture"

    @pytest.mark.parametrize("name", [
        "Gilet TRICOTÉE",
        "Knitted scarf",
        "WOOL beanie",
        "Écharpe tricotée",
    ])
    def test_case_insensitive(self, name):
        assert classify(name) == "maille"

    def test_deterministic(self):
        results = {classify("Bonnet wool mérinos") for _ in range(10)}
        assert results == {"maille"}


class TestKeywordClassifier:
    """Custom keyword lists"""

    def test_custom_keywords(self):
        classifier = KeywordClassifier(["crochet"])
        assert classifier.classify("Sac au crochet") == "maille"
        assert classifier.classify("Pull tricoté") == "couture"

    def test_blank_keywords_ignored(self):
        classifier = KeywordClassifier(["", "laine"])
        assert classifier.classify("Robe en soie") == "couture"
        assert classifier.classify("Gilet LAINE") == "maille"
