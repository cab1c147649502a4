from typing import Any

from fastapi import APIRouter, HTTPException

from cardpick.config import settings
from cardpick.domain.models import CreditCard
from cardpick.repository.card_store import CardStore, CatalogError

router = APIRouter(tags=["cards"])
card_store = CardStore(settings.card_catalog_file)


@router.get("/cards", response_model=list[CreditCard], response_model_by_alias=False)
def list_cards(active_only: bool = True) -> list[CreditCard]:
    try:
        cards = card_store.load_cards()
    except (FileNotFoundError, CatalogError) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if active_only:
        cards = [card for card in cards if card.is_active]
    return cards


@router.get("/cards/stats")
def card_stats() -> dict[str, Any]:
    try:
        return card_store.stats()
    except (FileNotFoundError, CatalogError) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
