"""Withdrawal strategies.

Every strategy answers one question: given this year's funding shortfall and
the opening balance of each account type, how much comes out of each
account. The projection loop only ever calls `select_withdrawals`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence

from ..data_model.accounts import (
    ACCOUNT_401K,
    ACCOUNT_HSA,
    ACCOUNT_IRA,
    ACCOUNT_OTHER,
    ACCOUNT_ROTH,
    ACCOUNT_TAXABLE,
    ACCOUNT_TYPES,
    TRADITIONAL_TYPES,
)
from ..data_model.household import FILING_SINGLE
from ..data_model.settings import StrategyParams, StrategyType, parse_strategy_type
from .tax import bracket_ceiling, standard_deduction

logger = logging.getLogger(__name__)

FOUR_PERCENT_RATE = 0.04
DEFAULT_BRACKET_RATE = 0.12
EARLY_RETIREMENT_HORIZON = 20

Balances = Dict[str, float]


def empty_balances() -> Balances:
    return {account_type: 0.0 for account_type in ACCOUNT_TYPES}


def _clean_balances(balances: Mapping[str, float]) -> Balances:
    clean = empty_balances()
    for account_type in ACCOUNT_TYPES:
        value = float(balances.get(account_type, 0.0) or 0.0)
        clean[account_type] = value if value > 0 else 0.0
    return clean


@dataclass
class WithdrawalContext:
    """What a strategy may know about the year besides balances and shortfall."""

    age: int
    year: int
    years_remaining: int
    filing_status: str = FILING_SINGLE
    other_ordinary_income: float = 0.0
    essential_expenses: float = 0.0
    discretionary_expenses: float = 0.0
    guaranteed_income: float = 0.0
    inflation_rate: float = 0.0
    growth_rate: float = 0.0
    rmd_age: int = 73
    required_rmd: float = 0.0
    ira_rmd_share: float = 0.0
    priority: str | None = None

    @property
    def requires_rmd(self) -> bool:
        return self.age >= self.rmd_age

    @property
    def essential_gap(self) -> float:
        return max(0.0, self.essential_expenses - self.guaranteed_income)


@dataclass
class WithdrawalPlan:
    """Per-account distributions for one year.

    `distributions` is everything that leaves each account. `roth_conversion`
    is the part of the 401k/IRA distributions deposited into the Roth, and
    `qcd` the part of the IRA distribution paid straight to charity.
    """

    distributions: Balances = field(default_factory=empty_balances)
    roth_conversion: float = 0.0
    qcd: float = 0.0

    def add(self, account_type: str, amount: float) -> None:
        if amount > 0:
            self.distributions[account_type] = self.distributions.get(account_type, 0.0) + amount

    def get(self, account_type: str) -> float:
        return self.distributions.get(account_type, 0.0)

    def total(self) -> float:
        return sum(self.distributions.values())

    def traditional_total(self) -> float:
        return sum(self.get(t) for t in TRADITIONAL_TYPES)

    def spending_total(self) -> float:
        return max(0.0, self.total() - self.roth_conversion - self.qcd)

    def clamp(self, balances: Mapping[str, float]) -> "WithdrawalPlan":
        for account_type in ACCOUNT_TYPES:
            requested = self.distributions.get(account_type, 0.0)
            self.distributions[account_type] = min(max(0.0, requested), max(0.0, balances.get(account_type, 0.0)))
        self.qcd = min(max(0.0, self.qcd), self.get(ACCOUNT_IRA))
        self.roth_conversion = min(max(0.0, self.roth_conversion), self.traditional_total() - self.qcd)
        return self


def _available(balances: Mapping[str, float], plan: WithdrawalPlan, account_type: str) -> float:
    return max(0.0, balances.get(account_type, 0.0) - plan.get(account_type))


def draw_in_order(
    amount: float,
    order: Iterable[str],
    balances: Mapping[str, float],
    plan: WithdrawalPlan,
) -> float:
    """Draws `amount` account by account; returns what could not be funded."""
    remaining = max(0.0, amount)
    for account_type in order:
        if remaining <= 0:
            break
        available = _available(balances, plan, account_type)
        if available <= 0:
            continue
        take = min(remaining, available)
        plan.add(account_type, take)
        remaining -= take
    return remaining


def draw_proportionally(
    amount: float,
    balances: Mapping[str, float],
    plan: WithdrawalPlan,
    account_types: Sequence[str] = ACCOUNT_TYPES,
) -> float:
    """Splits `amount` across accounts by their share of the available total."""
    available = {t: _available(balances, plan, t) for t in account_types}
    pool = sum(available.values())
    if pool <= 0 or amount <= 0:
        return max(0.0, amount)
    take_total = min(amount, pool)
    for account_type, value in available.items():
        if value > 0:
            plan.add(account_type, take_total * value / pool)
    return amount - take_total


def determine_withdrawal_order(
    priority: str | None,
    requires_rmd: bool,
    years_remaining: int,
    balances: Mapping[str, float],
) -> List[str]:
    """Legacy account ordering for a withdrawal priority.

    Only accounts with a positive balance are returned. Once RMDs apply,
    the traditional accounts are drawn first as the required distribution
    and therefore do not appear in the order.
    """
    priority = (priority or "default").lower()
    if requires_rmd:
        if priority == "legacy":
            sequence = [ACCOUNT_ROTH, ACCOUNT_HSA, ACCOUNT_TAXABLE, ACCOUNT_OTHER]
        else:
            sequence = [ACCOUNT_ROTH, ACCOUNT_TAXABLE, ACCOUNT_HSA, ACCOUNT_OTHER]
    elif priority == "legacy":
        sequence = [ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_HSA, ACCOUNT_ROTH, ACCOUNT_TAXABLE, ACCOUNT_OTHER]
    elif priority == "stable_income":
        sequence = [ACCOUNT_TAXABLE, ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_HSA, ACCOUNT_ROTH, ACCOUNT_OTHER]
    elif priority == "liquidity" or (priority == "sequence_risk" and years_remaining > EARLY_RETIREMENT_HORIZON):
        sequence = [ACCOUNT_TAXABLE, ACCOUNT_ROTH, ACCOUNT_HSA, ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_OTHER]
    else:
        # default, longevity, tax_optimization, late sequence_risk
        sequence = [ACCOUNT_TAXABLE, ACCOUNT_HSA, ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_ROTH, ACCOUNT_OTHER]
    return [t for t in sequence if balances.get(t, 0.0) > 0]


class WithdrawalStrategy:
    """Base class; subclasses implement `_select`."""

    strategy_type: StrategyType
    # Policy transfers (conversions, QCDs) may happen with nothing to fund.
    acts_without_shortfall = False

    def __init__(self, params: StrategyParams | None = None, priority: str = "default") -> None:
        self.params = (params or StrategyParams()).clamped()
        self.priority = priority or "default"

    def select_withdrawals(
        self,
        shortfall: float,
        balances: Mapping[str, float],
        context: WithdrawalContext,
    ) -> WithdrawalPlan:
        opening = _clean_balances(balances)
        shortfall = max(0.0, shortfall or 0.0)
        self._observe(opening, context)
        if shortfall <= 0 and not self.acts_without_shortfall:
            return WithdrawalPlan()
        plan = self._select(shortfall, opening, context)
        return plan.clamp(opening)

    def _observe(self, balances: Balances, context: WithdrawalContext) -> None:
        """Hook for strategies that track state every retired year."""

    def _select(self, shortfall: float, balances: Balances, context: WithdrawalContext) -> WithdrawalPlan:
        raise NotImplementedError

    def _allocate(self, amount: float, balances: Balances, context: WithdrawalContext) -> WithdrawalPlan:
        """Funds a policy amount using the configured priority order."""
        plan = WithdrawalPlan()
        remaining = amount
        if context.requires_rmd and context.required_rmd > 0:
            rmd_part = min(remaining, context.required_rmd)
            unfunded = draw_proportionally(rmd_part, balances, plan, TRADITIONAL_TYPES)
            remaining -= rmd_part - unfunded
        priority = context.priority or self.priority
        order = determine_withdrawal_order(priority, context.requires_rmd, context.years_remaining, balances)
        # exhausted preferred accounts fall through to whatever is left
        order += [t for t in ACCOUNT_TYPES if t not in order]
        draw_in_order(remaining, order, balances, plan)
        return plan


def _total(balances: Mapping[str, float]) -> float:
    return sum(balances.values())


def _bracket_room(params: StrategyParams, context: WithdrawalContext) -> float:
    """Gross traditional distribution that keeps taxable income under the threshold."""
    threshold = params.bracket_threshold or bracket_ceiling(DEFAULT_BRACKET_RATE, context.filing_status)
    return max(0.0, threshold + standard_deduction(context.filing_status) - context.other_ordinary_income)


class FourPercentRule(WithdrawalStrategy):
    strategy_type = StrategyType.FOUR_PERCENT

    def __init__(self, params: StrategyParams | None = None, priority: str = "default") -> None:
        super().__init__(params, priority)
        self.anchor_amount: float | None = None
        self.anchor_year: int | None = None

    def _observe(self, balances: Balances, context: WithdrawalContext) -> None:
        if self.anchor_amount is None:
            self.anchor_amount = FOUR_PERCENT_RATE * _total(balances)
            self.anchor_year = context.year
            logger.debug("4%% rule anchored at %.2f in %s", self.anchor_amount, context.year)

    def current_amount(self, year: int, inflation_rate: float) -> float:
        if self.anchor_amount is None:
            return 0.0
        return self.anchor_amount * (1.0 + inflation_rate) ** (year - self.anchor_year)

    def _select(self, shortfall, balances, context):
        return self._allocate(self.current_amount(context.year, context.inflation_rate), balances, context)


class FixedPercentageStrategy(WithdrawalStrategy):
    strategy_type = StrategyType.FIXED_PERCENTAGE

    def _select(self, shortfall, balances, context):
        return self._allocate(self.params.fixed_percentage_rate * _total(balances), balances, context)


class FixedDollarStrategy(WithdrawalStrategy):
    strategy_type = StrategyType.FIXED_DOLLAR

    def _select(self, shortfall, balances, context):
        return self._allocate(self.params.fixed_dollar_amount, balances, context)


class SystematicWithdrawalStrategy(WithdrawalStrategy):
    """Takes this year's expected earnings only, never principal."""

    strategy_type = StrategyType.SWP

    def _select(self, shortfall, balances, context):
        plan = WithdrawalPlan()
        earnings = _total(balances) * max(0.0, context.growth_rate)
        draw_proportionally(min(shortfall, earnings), balances, plan)
        return plan


class ProportionalStrategy(WithdrawalStrategy):
    strategy_type = StrategyType.PROPORTIONAL

    def _select(self, shortfall, balances, context):
        plan = WithdrawalPlan()
        draw_proportionally(shortfall, balances, plan)
        return plan


class BracketToppingStrategy(WithdrawalStrategy):
    """Fills the target bracket from traditional accounts, then taxable and Roth.

    Whatever is still missing once those are empty comes from the traditional
    accounts above the threshold.
    """

    strategy_type = StrategyType.BRACKET_TOPPING

    OVERFLOW_ORDER = (ACCOUNT_TAXABLE, ACCOUNT_ROTH, ACCOUNT_HSA, ACCOUNT_OTHER)

    def _select(self, shortfall, balances, context):
        plan = WithdrawalPlan()
        room = _bracket_room(self.params, context)
        remaining = draw_in_order(min(shortfall, room), TRADITIONAL_TYPES, balances, plan)
        remaining += shortfall - min(shortfall, room)
        remaining = draw_in_order(remaining, self.OVERFLOW_ORDER, balances, plan)
        draw_in_order(remaining, TRADITIONAL_TYPES, balances, plan)
        return plan


class BucketStrategy(WithdrawalStrategy):
    """Cash bucket, then income bucket, then growth bucket.

    Near the end of the horizon the growth bucket is no longer long-term
    money and is drawn ahead of the income bucket.
    """

    strategy_type = StrategyType.BUCKET

    CASH_BUCKET = (ACCOUNT_TAXABLE, ACCOUNT_OTHER)
    INCOME_BUCKET = (ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_HSA)
    GROWTH_BUCKET = (ACCOUNT_ROTH,)

    def _select(self, shortfall, balances, context):
        plan = WithdrawalPlan()
        horizon = self.params.bucket_cash_years + self.params.bucket_income_years
        if context.years_remaining <= horizon:
            order = self.CASH_BUCKET + self.GROWTH_BUCKET + self.INCOME_BUCKET
        else:
            order = self.CASH_BUCKET + self.INCOME_BUCKET + self.GROWTH_BUCKET
        draw_in_order(shortfall, order, balances, plan)
        return plan


class GuardrailsStrategy(WithdrawalStrategy):
    strategy_type = StrategyType.GUARDRAILS

    def __init__(self, params: StrategyParams | None = None, priority: str = "default") -> None:
        super().__init__(params, priority)
        self.prior_withdrawal: float | None = None

    def rails(self) -> tuple[float, float]:
        floor, ceiling = self.params.guardrail_floor, self.params.guardrail_ceiling
        if floor > ceiling:
            floor, ceiling = ceiling, floor
        return floor, ceiling

    def target_amount(self, shortfall: float, total: float, inflation_rate: float) -> float:
        if self.prior_withdrawal is None:
            return min(shortfall, total)
        amount = self.prior_withdrawal * (1.0 + inflation_rate)
        if total <= 0:
            return 0.0
        floor, ceiling = self.rails()
        rate = amount / total
        if rate > ceiling:
            amount *= 1.0 - self.params.guardrail_adjustment
            amount = max(amount, floor * total)
            amount = min(amount, ceiling * total)
        elif rate < floor:
            amount *= 1.0 + self.params.guardrail_adjustment
            amount = min(amount, ceiling * total)
            amount = max(amount, floor * total)
        return amount

    def _select(self, shortfall, balances, context):
        amount = self.target_amount(shortfall, _total(balances), context.inflation_rate)
        self.prior_withdrawal = amount
        return self._allocate(amount, balances, context)


class FloorUpsideStrategy(WithdrawalStrategy):
    """Essential gap from stable accounts, discretionary from portfolio upside."""

    strategy_type = StrategyType.FLOOR_UPSIDE

    STABLE_ORDER = (ACCOUNT_TAXABLE, ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_HSA, ACCOUNT_OTHER, ACCOUNT_ROTH)
    GROWTH_ORDER = (ACCOUNT_ROTH, ACCOUNT_TAXABLE, ACCOUNT_HSA, ACCOUNT_OTHER, ACCOUNT_401K, ACCOUNT_IRA)

    def _select(self, shortfall, balances, context):
        plan = WithdrawalPlan()
        essential = min(shortfall, context.essential_gap)
        draw_in_order(essential, self.STABLE_ORDER, balances, plan)
        upside = _total(balances) * max(0.0, context.growth_rate)
        draw_in_order(min(shortfall - essential, upside), self.GROWTH_ORDER, balances, plan)
        return plan


class RothConversionStrategy(WithdrawalStrategy):
    """Before RMD age: spend from taxable/Roth, convert traditional up to the bracket."""

    strategy_type = StrategyType.ROTH_CONVERSION
    acts_without_shortfall = True

    SPENDING_ORDER = (ACCOUNT_TAXABLE, ACCOUNT_ROTH, ACCOUNT_HSA, ACCOUNT_OTHER, ACCOUNT_401K, ACCOUNT_IRA)
    CONVERSION_ORDER = (ACCOUNT_IRA, ACCOUNT_401K)

    def _select(self, shortfall, balances, context):
        if context.requires_rmd:
            return self._allocate(shortfall, balances, context) if shortfall > 0 else WithdrawalPlan()
        plan = WithdrawalPlan()
        draw_in_order(shortfall, self.SPENDING_ORDER, balances, plan)
        room = max(0.0, _bracket_room(self.params, context) - plan.traditional_total())
        before = plan.traditional_total()
        draw_in_order(room, self.CONVERSION_ORDER, balances, plan)
        plan.roth_conversion = plan.traditional_total() - before
        return plan


class QCDStrategy(WithdrawalStrategy):
    """After RMD age: satisfy the IRA share of the RMD as a charitable distribution."""

    strategy_type = StrategyType.QCD
    acts_without_shortfall = True

    SPENDING_ORDER = (ACCOUNT_TAXABLE, ACCOUNT_ROTH, ACCOUNT_HSA, ACCOUNT_401K, ACCOUNT_OTHER, ACCOUNT_IRA)

    def _select(self, shortfall, balances, context):
        if not context.requires_rmd:
            return self._allocate(shortfall, balances, context) if shortfall > 0 else WithdrawalPlan()
        plan = WithdrawalPlan()
        qcd = min(balances.get(ACCOUNT_IRA, 0.0), context.ira_rmd_share, self.params.qcd_annual_limit)
        plan.add(ACCOUNT_IRA, qcd)
        plan.qcd = qcd
        draw_in_order(shortfall, self.SPENDING_ORDER, balances, plan)
        return plan


STRATEGY_CLASSES: dict[StrategyType, type[WithdrawalStrategy]] = {
    cls.strategy_type: cls
    for cls in (
        FourPercentRule,
        FixedPercentageStrategy,
        FixedDollarStrategy,
        SystematicWithdrawalStrategy,
        ProportionalStrategy,
        BracketToppingStrategy,
        BucketStrategy,
        GuardrailsStrategy,
        FloorUpsideStrategy,
        RothConversionStrategy,
        QCDStrategy,
    )
}


def create_strategy(
    strategy_type: StrategyType | str,
    params: StrategyParams | None = None,
    priority: str = "default",
) -> WithdrawalStrategy:
    """Builds a fresh strategy instance; stateful strategies must not be shared across runs."""
    return STRATEGY_CLASSES[parse_strategy_type(strategy_type)](params, priority)
