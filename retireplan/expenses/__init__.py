from .classifier import (
    DISCRETIONARY,
    ESSENTIAL,
    ClassificationResult,
    ExpenseClassifier,
    classify_expense,
    split_expenses,
)

__all__ = [
    "DISCRETIONARY",
    "ESSENTIAL",
    "ClassificationResult",
    "ExpenseClassifier",
    "classify_expense",
    "split_expenses",
]
