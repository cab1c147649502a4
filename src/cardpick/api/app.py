import uvicorn
from fastapi import FastAPI

from cardpick.api.routes.cards import router as cards_router
from cardpick.api.routes.health import router as health_router
from cardpick.api.routes.recommend import router as recommend_router
from cardpick.config import configure_logging, settings

app = FastAPI(title="CardPick API", version="0.1.0")
app.include_router(health_router)
app.include_router(cards_router)
app.include_router(recommend_router)


def run() -> None:
    configure_logging()
    uvicorn.run("cardpick.api.app:app", host=settings.app_host, port=settings.app_port, reload=False)
