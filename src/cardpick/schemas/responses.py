from pydantic import BaseModel

from cardpick.domain.models import CardRecommendation, Transaction
from cardpick.engine.explain import format_effective_rate, format_reward


class RecommendResponse(BaseModel):
    best_card: CardRecommendation | None
    ranked_cards: list[CardRecommendation]
    parsed_transaction: Transaction
    policy_evidence: list[str]
    total_cards_evaluated: int
    eligible_cards_count: int

    def to_text(self, top: int = 3) -> str:
        """Plain-text summary shared by the CLI and the Telegram bot."""
        txn = self.parsed_transaction
        scenario = f"Transaction: {txn.amount:,.2f} {txn.currency} / {txn.merchant_id or txn.category or 'uncategorised'}"
        if self.best_card is None:
            return "\n".join([scenario, "No eligible card for this transaction."])

        best = self.best_card
        lines = [
            f"Best card: {best.card.name} ({best.card.issuer})",
            f"Reward: {format_reward(best.calculation, best.card.reward_programs)}"
            f" at {format_effective_rate(best.calculation)}, net value {best.net_value:,.2f}",
            scenario,
        ]
        if self.policy_evidence:
            lines.append("Evidence:")
            lines.extend(f"- {item}" for item in self.policy_evidence)

        runners_up = self.ranked_cards[1:top]
        if runners_up:
            lines.append("Alternatives:")
            lines.extend(
                f"{item.rank}. {item.card.name}: {format_reward(item.calculation, item.card.reward_programs)}"
                f" (net {item.net_value:,.2f})"
                for item in runners_up
            )
        return "\n".join(lines)
