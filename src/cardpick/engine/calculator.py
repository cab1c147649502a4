import logging

from cardpick.domain.models import (
    HOME_CURRENCY,
    ContributionType,
    CreditCard,
    RewardCalculation,
    RewardRule,
    RuleContribution,
    SkippedRule,
    Transaction,
)
from cardpick.engine.fees import calculate_fees
from cardpick.engine.matcher import MismatchReason, mismatch_reason

logger = logging.getLogger(__name__)

# Rules that were targeted at the purchase but missed a threshold; worth telling the user about.
REPORTED_SKIP_REASONS = {"minAmount", "maxAmount", "currency", "paymentType", "minMonthlySpending"}


def _banded_reward(rule: RewardRule, amount: float, monthly_spending: float | None) -> tuple[float, bool]:
    """Reward before any reward cap, splitting spend at the rule's monthly spending cap.

    Spend that still fits under the cap earns ``reward_rate``; the remainder
    earns ``fallback_rate``. The second value tells whether the fallback band
    was used.
    """
    if rule.monthly_spending_cap is None or rule.fallback_rate is None or monthly_spending is None:
        return amount * rule.reward_rate, False

    headroom = max(rule.monthly_spending_cap - monthly_spending, 0.0)
    under_cap = min(amount, headroom)
    over_cap = amount - under_cap
    if over_cap <= 0:
        return amount * rule.reward_rate, False

    return under_cap * rule.reward_rate + over_cap * rule.fallback_rate, True


def _contribution(
    rule: RewardRule,
    transaction: Transaction,
    contribution_type: ContributionType,
    monthly_spending: float | None,
) -> RuleContribution:
    raw_amount, fallback_applied = _banded_reward(rule, transaction.amount, monthly_spending)
    rate = raw_amount / transaction.amount if fallback_applied else rule.reward_rate

    amount = raw_amount
    original_amount = None
    was_capped = rule.max_reward_cap is not None and raw_amount > rule.max_reward_cap
    if was_capped:
        amount = rule.max_reward_cap
        original_amount = raw_amount

    return RuleContribution(
        rule_id=rule.id,
        rate=rate,
        amount=amount,
        contribution_type=contribution_type,
        was_capped=was_capped,
        original_amount=original_amount,
        fallback_applied=fallback_applied,
        description=rule.description,
        priority=rule.priority,
        is_promotional=rule.is_promotional,
        valid_until=rule.valid_until,
        max_reward_cap=rule.max_reward_cap,
        monthly_spending_cap=rule.monthly_spending_cap,
        action_required=rule.action_required,
    )


def _skipped(
    rule: RewardRule,
    reason: MismatchReason,
    transaction: Transaction,
    monthly_spending: float | None,
) -> SkippedRule:
    threshold = None
    actual_value = None
    conditions = rule.conditions
    if reason == "minAmount":
        threshold, actual_value = conditions.min_amount, transaction.amount
    elif reason == "maxAmount":
        threshold, actual_value = conditions.max_amount, transaction.amount
    elif reason == "minMonthlySpending":
        threshold, actual_value = conditions.min_monthly_spending, monthly_spending

    return SkippedRule(
        rule_id=rule.id,
        description=rule.description,
        rate=rule.reward_rate,
        reason=reason,
        threshold=threshold,
        actual_value=actual_value,
    )


def calculate_reward(
    card: CreditCard,
    transaction: Transaction,
    *,
    monthly_spending: float | None = None,
    home_currency: str = HOME_CURRENCY,
) -> RewardCalculation:
    """Fold every rule of ``card`` that applies to ``transaction`` into one reward.

    A matching ``specific`` rule (highest rate, first in card order on ties)
    replaces the base rate; otherwise the first matching ``base`` rule applies.
    Every matching ``bonus`` rule stacks on top. ``effective_rate`` is the sum
    of the contributing rates, so it overstates reward/amount once a reward
    cap has clamped a contribution.
    """
    matching: list[RewardRule] = []
    skipped: list[SkippedRule] = []
    for rule in card.rewards:
        reason = mismatch_reason(
            rule,
            transaction,
            monthly_spending=monthly_spending,
            home_currency=home_currency,
        )
        if reason is None:
            matching.append(rule)
        elif reason in REPORTED_SKIP_REASONS:
            skipped.append(_skipped(rule, reason, transaction, monthly_spending))

    fees = calculate_fees(card, transaction, home_currency=home_currency)

    if not matching:
        logger.debug("card=%s no matching rules", card.id)
        return RewardCalculation(
            card_id=card.id,
            reward_amount=0.0,
            reward_unit="cash",
            effective_rate=0.0,
            fees=fees,
            capped_out=False,
            skipped_rules=skipped,
        )

    base_rules = [rule for rule in matching if rule.priority == "base"]
    bonus_rules = [rule for rule in matching if rule.priority == "bonus"]
    specific_rules = [rule for rule in matching if rule.priority == "specific"]

    contributions: list[RuleContribution] = []
    if specific_rules:
        best_specific = max(specific_rules, key=lambda rule: rule.reward_rate)
        contributions.append(_contribution(best_specific, transaction, "replaced", monthly_spending))
    elif base_rules:
        contributions.append(_contribution(base_rules[0], transaction, "base", monthly_spending))

    for bonus in bonus_rules:
        contributions.append(_contribution(bonus, transaction, "stacked", monthly_spending))

    reward_amount = sum(item.amount for item in contributions)
    effective_rate = sum(item.rate for item in contributions)

    logger.debug(
        "card=%s rules=%s reward=%.4f rate=%.4f fees=%.4f",
        card.id,
        [item.rule_id for item in contributions],
        reward_amount,
        effective_rate,
        fees,
    )

    return RewardCalculation(
        card_id=card.id,
        reward_amount=reward_amount,
        reward_unit=matching[0].reward_unit,
        effective_rate=effective_rate,
        applied_rules=[item.rule_id for item in contributions],
        rule_breakdown=contributions,
        fees=fees,
        capped_out=any(item.was_capped for item in contributions),
        skipped_rules=skipped,
    )
