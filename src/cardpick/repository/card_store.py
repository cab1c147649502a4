import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cardpick.domain.models import CreditCard, RewardRule
from cardpick.domain.targets import MerchantScope, Untargeted

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    pass


def validate_rule(rule: RewardRule) -> list[str]:
    errors: list[str] = []

    target = rule.target
    if isinstance(target, Untargeted) or (
        isinstance(target, MerchantScope) and not (target.categories or target.merchants)
    ):
        errors.append("Must specify categories, specificMerchants, or merchantTypes")
    if rule.reward_rate < 0:
        errors.append("Reward rate must be a non-negative number")
    if rule.max_reward_cap is not None and rule.max_reward_cap < 0:
        errors.append("maxRewardCap must be non-negative")
    if (rule.monthly_spending_cap is None) != (rule.fallback_rate is None):
        errors.append("monthlySpendingCap and fallbackRate must be set together")
    if rule.fallback_rate is not None and rule.fallback_rate < 0:
        errors.append("fallbackRate must be non-negative")
    if rule.valid_from and rule.valid_until and rule.valid_from > rule.valid_until:
        errors.append("validFrom must not be later than validUntil")

    return errors


def validate_card(card: CreditCard) -> list[str]:
    """Semantic checks the engine relies on but pydantic cannot express per field."""
    errors: list[str] = []

    if not card.rewards:
        errors.append("At least one reward rule is required")

    if card.fees.annual_fee < 0:
        errors.append("Annual fee must be non-negative")

    units = {rule.reward_unit for rule in card.rewards}
    if len(units) > 1:
        errors.append(f"Reward rules mix units ({', '.join(sorted(units))}); stacking across units is undefined")

    seen: set[str] = set()
    for index, rule in enumerate(card.rewards, start=1):
        if rule.id in seen:
            errors.append(f"Reward rule {index}: duplicate id '{rule.id}'")
        seen.add(rule.id)
        errors.extend(f"Reward rule {index} ({rule.id}): {message}" for message in validate_rule(rule))

    return errors


class CardStore:
    def __init__(self, catalog_file: str | Path):
        self.catalog_file = Path(catalog_file)

    def _read_database(self) -> dict[str, Any]:
        if not self.catalog_file.exists():
            raise FileNotFoundError(f"Card catalog not found: {self.catalog_file}")

        with self.catalog_file.open("r", encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as exc:
                raise CatalogError(f"Card catalog is not valid JSON: {self.catalog_file}") from exc

        if isinstance(data, list):
            return {"cards": data}
        if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
            raise CatalogError("Invalid card database: cards must be an array")
        return data

    def load_cards(self) -> list[CreditCard]:
        """Load every valid card, active or not. Invalid entries are logged and skipped."""
        return self._validate_cards(self._read_database()["cards"])

    def _validate_cards(self, raw_cards: list[Any]) -> list[CreditCard]:
        cards: list[CreditCard] = []

        for index, item in enumerate(raw_cards):
            try:
                card = CreditCard.model_validate(item)
            except ValidationError as exc:
                card_id = item.get("id") if isinstance(item, dict) else None
                logger.warning("Skipping card #%d (%s): %d validation error(s)", index, card_id, exc.error_count())
                continue

            errors = validate_card(card)
            if errors:
                logger.warning("Skipping card %s: %s", card.id, "; ".join(errors))
                continue
            cards.append(card)

        skipped = len(raw_cards) - len(cards)
        if skipped:
            logger.warning("Loaded %d valid cards, %d invalid cards were skipped", len(cards), skipped)
        else:
            logger.info("Loaded %d cards from %s", len(cards), self.catalog_file)
        return cards

    def get_card(self, card_id: str) -> CreditCard | None:
        return next((card for card in self.load_cards() if card.id == card_id), None)

    def cards_by_issuer(self, issuer: str) -> list[CreditCard]:
        return [card for card in self.load_cards() if card.issuer.lower() == issuer.lower()]

    def cards_by_reward_unit(self, reward_unit: str) -> list[CreditCard]:
        return [card for card in self.load_cards() if any(rule.reward_unit == reward_unit for rule in card.rewards)]

    def stats(self) -> dict[str, Any]:
        database = self._read_database()
        cards = self._validate_cards(database["cards"])
        rules = [rule for card in cards for rule in card.rewards]
        active = sum(1 for card in cards if card.is_active)
        return {
            "total_cards": len(cards),
            "active_cards": active,
            "inactive_cards": len(cards) - active,
            "issuers": sorted({card.issuer for card in cards}),
            "reward_units": sorted({rule.reward_unit for rule in rules}),
            "total_reward_rules": len(rules),
            "promotional_rules": sum(1 for rule in rules if rule.is_promotional),
            "version": database.get("version"),
            "last_updated": database.get("lastUpdated"),
        }
