import logging

from cardpick.domain.models import HOME_CURRENCY, Transaction
from cardpick.engine.explain import policy_evidence
from cardpick.engine.selectors import recommend_cards
from cardpick.nlp.parser import TransactionParseError, build_transaction
from cardpick.repository.card_store import CardStore
from cardpick.schemas.requests import RecommendRequest
from cardpick.schemas.responses import RecommendResponse

logger = logging.getLogger(__name__)


class RecommendationOrchestrator:
    def __init__(self, card_store: CardStore, home_currency: str = HOME_CURRENCY):
        self.card_store = card_store
        self.home_currency = home_currency

    def _build_transaction(self, request: RecommendRequest) -> Transaction:
        if request.message:
            return build_transaction(
                message=request.message,
                amount=request.amount,
                currency=request.currency,
                category=request.category,
                merchant_id=request.merchant_id,
                payment_type=request.payment_type,
                location=request.location,
                date=request.date,
            )

        if request.amount is None:
            raise ValueError("Either message or amount is required.")
        if request.amount <= 0:
            raise TransactionParseError("Transaction amount must be positive.")

        fields = request.model_dump(exclude={"message", "preferences"}, exclude_none=True)
        fields.setdefault("currency", self.home_currency)
        return Transaction.model_validate(fields)

    def recommend(self, request: RecommendRequest) -> RecommendResponse:
        transaction = self._build_transaction(request)
        cards = self.card_store.load_cards()
        result = recommend_cards(cards, transaction, request.preferences, home_currency=self.home_currency)

        best = result.recommendations[0] if result.has_recommendation else None
        evidence = policy_evidence(best.card, best.calculation) if best else []

        if best:
            logger.info(
                "Recommended %s for %.2f %s (%d of %d cards eligible)",
                best.card.id,
                transaction.amount,
                transaction.currency,
                result.eligible_cards_count,
                result.total_cards_evaluated,
            )
        else:
            logger.info("No eligible card for %.2f %s", transaction.amount, transaction.currency)

        return RecommendResponse(
            best_card=best,
            ranked_cards=result.recommendations,
            parsed_transaction=transaction,
            policy_evidence=evidence,
            total_cards_evaluated=result.total_cards_evaluated,
            eligible_cards_count=result.eligible_cards_count,
        )
