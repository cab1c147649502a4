from cardpick.domain.models import CreditCard, RewardCalculation, RewardPrograms


def format_reward(calculation: RewardCalculation, programs: RewardPrograms | None = None) -> str:
    amount = calculation.reward_amount
    unit = calculation.reward_unit
    if unit == "cash":
        return f"${amount:,.2f}"

    label = unit
    program = getattr(programs, unit, None) if programs else None
    if program is not None:
        label = program.name
    return f"{amount:,.0f} {label}"


def format_effective_rate(calculation: RewardCalculation) -> str:
    return f"{calculation.effective_rate:.2%}"


def policy_evidence(card: CreditCard, calculation: RewardCalculation, limit: int = 5) -> list[str]:
    snippets: list[str] = []

    for item in calculation.rule_breakdown:
        line = f"{card.name}: {item.description or item.rule_id} ({item.rate:.2%}, {item.contribution_type})"
        if item.was_capped and item.max_reward_cap is not None:
            line += f", capped at {item.max_reward_cap:,.2f}"
        if item.fallback_applied and item.monthly_spending_cap is not None:
            line += f", fallback rate beyond {item.monthly_spending_cap:,.0f} monthly spend"
        if item.is_promotional and item.valid_until:
            line += f", until {item.valid_until.isoformat()}"
        if item.action_required:
            line += f" [{item.action_required}]"
        snippets.append(line)

    for skipped in calculation.skipped_rules:
        label = skipped.description or skipped.rule_id
        if skipped.reason == "minAmount" and skipped.threshold is not None and skipped.actual_value is not None:
            shortfall = skipped.threshold - skipped.actual_value
            snippets.append(f"{card.name}: spend {shortfall:,.2f} more to unlock {label} ({skipped.rate:.2%})")
        else:
            snippets.append(f"{card.name}: {label} not applied ({skipped.reason})")

    if calculation.fees > 0 and card.fees.foreign_transaction_fee_rate:
        snippets.append(
            f"{card.name}: foreign transaction fee {card.fees.foreign_transaction_fee_rate:.2%}"
            f" = {calculation.fees:,.2f}"
        )

    return snippets[:limit]
