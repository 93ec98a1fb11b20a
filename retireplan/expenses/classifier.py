"""Essential vs discretionary expense classification.

Names are normalized and matched against keyword lists; the best-scoring
class wins. Anything without a confident hit is discretionary.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

ESSENTIAL = "essential"
DISCRETIONARY = "discretionary"

DEFAULT_KEYWORD_MAP: Dict[str, tuple[str, ...]] = {
    ESSENTIAL: (
        "rent",
        "mortgage",
        "tax",
        "taxes",
        "maintenance",
        "grocery",
        "groceries",
        "utility",
        "utilities",
        "medical",
    ),
}


def _normalize(text: str | None) -> str:
    """Lowercases and collapses whitespace for matching."""
    return re.sub(r"\s+", " ", str(text or "").strip().lower())


@dataclass
class ClassificationResult:
    category: str
    confidence: float
    matched: tuple[str, ...] = ()


class ExpenseClassifier:
    """Keyword classifier for expense names.

    Parameters:
        keyword_map: mapping of category -> keywords
        min_confidence: minimum score for a keyword category to win
    """

    def __init__(
        self,
        keyword_map: Mapping[str, Iterable[str]] | None = None,
        min_confidence: float = 0.35,
        default_category: str = DISCRETIONARY,
    ) -> None:
        self.keyword_map: Dict[str, tuple[str, ...]] = {
            k.lower(): tuple(_normalize(kw) for kw in v) for k, v in (keyword_map or DEFAULT_KEYWORD_MAP).items()
        }
        self.min_confidence = min_confidence
        self.default_category = default_category

    def _matches(self, text: str, keywords: Iterable[str]) -> tuple[str, ...]:
        words = set(re.findall(r"[a-z0-9]+", text))
        return tuple(kw for kw in keywords if kw and (kw in words or (" " in kw and kw in text)))

    def classify(self, name: str) -> ClassificationResult:
        text = _normalize(name)
        best_cat = None
        best_score = 0.0
        best_hits: tuple[str, ...] = ()
        for cat, keywords in self.keyword_map.items():
            hits = self._matches(text, keywords)
            if not hits:
                continue
            # diminishing returns, capped at 1.0
            score = min(1.0, 0.4 + 0.2 * len(hits))
            if score > best_score:
                best_cat, best_score, best_hits = cat, score, hits
        if best_cat and best_score >= self.min_confidence:
            return ClassificationResult(category=best_cat, confidence=best_score, matched=best_hits)
        return ClassificationResult(category=self.default_category, confidence=0.0)

    def is_essential(self, name: str) -> bool:
        return self.classify(name).category == ESSENTIAL


_DEFAULT_CLASSIFIER = ExpenseClassifier()


def classify_expense(name: str) -> str:
    return _DEFAULT_CLASSIFIER.classify(name).category


def split_expenses(items, age: int, classifier: ExpenseClassifier | None = None) -> tuple[float, float]:
    """Monthly (essential, discretionary) totals of `items` at `age`."""
    classifier = classifier or _DEFAULT_CLASSIFIER
    essential = 0.0
    discretionary = 0.0
    for item in items or []:
        amount = item.monthly_amount(age)
        if classifier.is_essential(item.name):
            essential += amount
        else:
            discretionary += amount
    return essential, discretionary
