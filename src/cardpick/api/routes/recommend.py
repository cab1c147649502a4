import logging

from fastapi import APIRouter, HTTPException

from cardpick.agents.orchestrator import RecommendationOrchestrator
from cardpick.config import settings
from cardpick.repository.card_store import CardStore, CatalogError
from cardpick.schemas.requests import RecommendRequest
from cardpick.schemas.responses import RecommendResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommend"])
orchestrator = RecommendationOrchestrator(CardStore(settings.card_catalog_file), settings.home_currency)


@router.post("/recommend", response_model=RecommendResponse, response_model_by_alias=False)
def recommend(request: RecommendRequest) -> RecommendResponse:
    try:
        return orchestrator.recommend(request)
    except (FileNotFoundError, CatalogError) as exc:
        logger.error("Card catalog unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
