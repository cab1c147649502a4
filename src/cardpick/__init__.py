from cardpick.domain.models import (
    CardRecommendation,
    CreditCard,
    RecommendationPreferences,
    RecommendationResult,
    RewardCalculation,
    RewardRule,
    Transaction,
)
from cardpick.engine.calculator import calculate_reward
from cardpick.engine.matcher import matches
from cardpick.engine.selectors import rank_cards, recommend_cards
from cardpick.repository.card_store import CardStore

__all__ = [
    "CardRecommendation",
    "CardStore",
    "CreditCard",
    "RecommendationPreferences",
    "RecommendationResult",
    "RewardCalculation",
    "RewardRule",
    "Transaction",
    "calculate_reward",
    "matches",
    "rank_cards",
    "recommend_cards",
]
