from dataclasses import replace

import pytest

from retireplan.engine.simulator import project
from retireplan.engine.social_security import annual_benefit, claim_multiplier, full_retirement_age


def test_full_retirement_age():
    assert full_retirement_age(1974) == 67
    assert full_retirement_age(1955) == 66


def test_claim_multiplier():
    assert claim_multiplier(1974, 67) == 1.0
    assert claim_multiplier(1974, 62) == pytest.approx(0.75)
    assert claim_multiplier(1974, 55) == pytest.approx(0.70)
    assert claim_multiplier(1974, 70) == pytest.approx(1.24)
    assert claim_multiplier(1974, 75) == pytest.approx(1.24)


def test_benefit_window():
    assert annual_benefit(20000, 1974, 62, 61, 90, 1.0) == 0.0
    assert annual_benefit(20000, 1974, 62, 91, 90, 1.0) == 0.0
    assert annual_benefit(20000, 1974, 62, 62, 90, 1.5) == pytest.approx(20000 * 0.75 * 1.5)


def test_ssa_income_in_projection(household, accounts, expenses, settings):
    records = project(household, accounts, expenses, [], replace(settings, include_planner_ssa=True))

    by_age = {r.age: r for r in records}
    assert by_age[61].ssa_income == 0.0
    assert by_age[62].ssa_income == pytest.approx(20000 * 0.75 * 1.04 ** 12)
