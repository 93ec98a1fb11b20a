from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .base import coerce_bool, coerce_int

FILING_SINGLE = "Single"
FILING_JOINT = "Married Filing Jointly"
FILING_SEPARATE = "Married Filing Separately"
FILING_HEAD = "Head of Household"

FILING_STATUSES: tuple[str, ...] = (FILING_SINGLE, FILING_JOINT, FILING_SEPARATE, FILING_HEAD)


@dataclass(frozen=True)
class Household:
    """Plan-level household description shared by every scenario of a plan."""

    birth_year: int
    life_expectancy: int = 90
    filing_status: str | None = None
    include_spouse: bool = False
    spouse_birth_year: int | None = None
    spouse_life_expectancy: int | None = None

    @property
    def has_spouse(self) -> bool:
        return bool(self.include_spouse and self.spouse_birth_year)

    def end_year(self) -> int:
        """Last simulated calendar year: the later of both life expectancies."""
        last = self.birth_year + self.life_expectancy
        if self.has_spouse and self.spouse_life_expectancy:
            last = max(last, self.spouse_birth_year + self.spouse_life_expectancy)
        return last

    def spouse_age(self, year: int) -> int | None:
        if not self.has_spouse:
            return None
        return year - self.spouse_birth_year


def household_from_payload(payload: Mapping[str, Any], default_life_expectancy: int = 90) -> Household:
    birth_year = coerce_int(payload.get("birth_year", payload.get("birthYear")))
    if birth_year is None:
        raise ValueError("Birth year is required.")
    spouse_life = coerce_int(payload.get("spouse_life_expectancy", payload.get("spouseLifeExpectancy")))
    status = payload.get("filing_status", payload.get("filingStatus")) or None
    return Household(
        birth_year=birth_year,
        life_expectancy=coerce_int(payload.get("life_expectancy", payload.get("lifeExpectancy")), default_life_expectancy),
        filing_status=str(status) if status else None,
        include_spouse=coerce_bool(payload.get("include_spouse", payload.get("includeSpouse", False))),
        spouse_birth_year=coerce_int(payload.get("spouse_birth_year", payload.get("spouseBirthYear"))),
        spouse_life_expectancy=spouse_life,
    )
