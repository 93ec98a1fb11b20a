from retireplan.data_model import ExpenseItem
from retireplan.expenses import (
    DISCRETIONARY,
    ESSENTIAL,
    ExpenseClassifier,
    classify_expense,
    split_expenses,
)


def test_default_keywords_are_essential():
    for name in ["Rent", "Mortgage", "Property Taxes", "Home Maintenance", "Groceries", "Utilities", "Medical"]:
        assert classify_expense(name) == ESSENTIAL


def test_unmatched_names_are_discretionary():
    assert classify_expense("Travel") == DISCRETIONARY
    assert classify_expense("") == DISCRETIONARY


def test_matching_is_word_based():
    # "rental car" should not match "rent"
    assert classify_expense("Rental car") == DISCRETIONARY


def test_classifier_confidence_and_threshold():
    classifier = ExpenseClassifier(min_confidence=0.9)

    result = classifier.classify("Rent")

    assert result.category == DISCRETIONARY
    assert ExpenseClassifier().classify("Rent and utilities").confidence == 0.8


def test_custom_keyword_map():
    classifier = ExpenseClassifier(keyword_map={ESSENTIAL: ["insurance"]})

    assert classifier.is_essential("Car Insurance")
    assert not classifier.is_essential("Rent")


def test_split_expenses_uses_age_specific_amounts():
    items = [
        ExpenseItem(name="Rent", amount_before_65=2000.0, amount_after_65=1500.0),
        ExpenseItem(name="Travel", amount_before_65=200.0, amount_after_65=600.0),
    ]

    assert split_expenses(items, 60) == (2000.0, 200.0)
    assert split_expenses(items, 65) == (1500.0, 600.0)
