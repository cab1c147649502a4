import logging

from cardpick.domain.models import (
    HOME_CURRENCY,
    CardComparison,
    CardRecommendation,
    CreditCard,
    RecommendationPreferences,
    RecommendationResult,
    RewardCalculation,
    RewardUnit,
    Transaction,
)
from cardpick.engine.calculator import calculate_reward

logger = logging.getLogger(__name__)

REWARD_UNITS: tuple[RewardUnit, ...] = ("cash", "miles", "points")


def calculate_net_value(calculation: RewardCalculation) -> float:
    return calculation.reward_amount - calculation.fees


def _ranking_key(card: CreditCard, calculation: RewardCalculation, preferred_issuers: set[str]) -> tuple:
    # Ascending sort: best card first, card name breaks the last tie.
    return (
        -calculate_net_value(calculation),
        -calculation.reward_amount,
        card.fees.annual_fee,
        card.issuer not in preferred_issuers,
        card.name.casefold(),
        card.name,
        card.id,
    )


def recommend_cards(
    cards: list[CreditCard],
    transaction: Transaction,
    preferences: RecommendationPreferences | None = None,
    *,
    home_currency: str = HOME_CURRENCY,
) -> RecommendationResult:
    """Score every eligible card for ``transaction`` and return them best first.

    Inactive and user-excluded cards never reach scoring. ``max_annual_fee``
    filters before scoring; ``preferred_reward_units`` and ``min_reward_rate``
    filter on the calculated result. An empty ranking is a normal outcome.
    """
    preferences = preferences or RecommendationPreferences()
    excluded_ids = set(preferences.excluded_card_ids)

    eligible = [card for card in cards if card.is_active and card.id not in excluded_ids]
    if preferences.max_annual_fee is not None:
        eligible = [card for card in eligible if card.fees.annual_fee <= preferences.max_annual_fee]

    scored = [
        (
            card,
            calculate_reward(
                card,
                transaction,
                monthly_spending=preferences.monthly_spending,
                home_currency=home_currency,
            ),
        )
        for card in eligible
    ]

    if preferences.preferred_reward_units:
        units = set(preferences.preferred_reward_units)
        # A calculation with no applied rule has no real unit of its own.
        scored = [item for item in scored if item[1].applied_rules and item[1].reward_unit in units]

    if preferences.min_reward_rate is not None:
        scored = [item for item in scored if item[1].effective_rate >= preferences.min_reward_rate]

    preferred_issuers = set(preferences.preferred_issuers)
    scored.sort(key=lambda item: _ranking_key(item[0], item[1], preferred_issuers))

    recommendations = [
        CardRecommendation(
            card=card,
            calculation=calculation,
            net_value=calculate_net_value(calculation),
            rank=rank,
            is_recommended=rank == 1,
        )
        for rank, (card, calculation) in enumerate(scored, start=1)
    ]

    logger.debug(
        "ranked %d of %d cards (%d eligible) for %.2f %s",
        len(recommendations),
        len(cards),
        len(eligible),
        transaction.amount,
        transaction.currency,
    )

    return RecommendationResult(
        recommendations=recommendations,
        transaction=transaction,
        total_cards_evaluated=len(cards),
        eligible_cards_count=len(eligible),
        has_recommendation=bool(recommendations),
    )


def rank_cards(
    cards: list[CreditCard],
    transaction: Transaction,
    preferences: RecommendationPreferences | None = None,
    *,
    home_currency: str = HOME_CURRENCY,
) -> list[CardRecommendation]:
    return recommend_cards(cards, transaction, preferences, home_currency=home_currency).recommendations


def top_recommendations(result: RecommendationResult, count: int = 3) -> list[CardRecommendation]:
    return result.recommendations[:count]


def filter_by_reward_unit(result: RecommendationResult, reward_unit: RewardUnit) -> list[CardRecommendation]:
    return [item for item in result.recommendations if item.calculation.reward_unit == reward_unit]


def group_by_reward_unit(result: RecommendationResult) -> dict[str, list[CardRecommendation]]:
    grouped: dict[str, list[CardRecommendation]] = {unit: [] for unit in REWARD_UNITS}
    for item in result.recommendations:
        grouped[item.calculation.reward_unit].append(item)
    return grouped


def best_card_for_reward_unit(result: RecommendationResult, reward_unit: RewardUnit) -> CardRecommendation | None:
    filtered = filter_by_reward_unit(result, reward_unit)
    return filtered[0] if filtered else None


def compare_cards(current: CardRecommendation, alternative: CardRecommendation) -> CardComparison:
    """How much more (or less) net value ``alternative`` gives than ``current``."""
    savings_amount = alternative.net_value - current.net_value
    savings_percentage = savings_amount / current.net_value * 100 if current.net_value > 0 else 0.0
    return CardComparison(
        savings_amount=savings_amount,
        savings_percentage=savings_percentage,
        is_better=savings_amount > 0,
    )
