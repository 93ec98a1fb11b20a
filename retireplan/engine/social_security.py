from __future__ import annotations

EARLY_REDUCTION_PER_YEAR = 0.05
MIN_EARLY_MULTIPLIER = 0.70
DELAYED_CREDIT_PER_YEAR = 0.08
MAX_CLAIM_AGE = 70


def full_retirement_age(birth_year: int) -> int:
    return 67 if birth_year >= 1960 else 66


def claim_multiplier(birth_year: int, start_age: int) -> float:
    """Benefit multiplier for claiming at `start_age` instead of full retirement age."""
    fra = full_retirement_age(birth_year)
    if start_age < fra:
        return max(MIN_EARLY_MULTIPLIER, 1.0 - (fra - start_age) * EARLY_REDUCTION_PER_YEAR)
    return 1.0 + (min(start_age, MAX_CLAIM_AGE) - fra) * DELAYED_CREDIT_PER_YEAR


def annual_benefit(
    base_amount: float,
    birth_year: int,
    start_age: int,
    age: int,
    life_expectancy: int | None,
    inflation_factor: float,
) -> float:
    """Benefit paid in a year where the recipient is `age`; zero outside the claiming window."""
    if age < start_age:
        return 0.0
    if life_expectancy is not None and age > life_expectancy:
        return 0.0
    return max(0.0, base_amount) * claim_multiplier(birth_year, start_age) * inflation_factor
