import logging

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from cardpick.agents.orchestrator import RecommendationOrchestrator
from cardpick.config import configure_logging, settings
from cardpick.repository.card_store import CardStore, CatalogError
from cardpick.schemas.requests import RecommendRequest

logger = logging.getLogger(__name__)

orchestrator = RecommendationOrchestrator(CardStore(settings.card_catalog_file), settings.home_currency)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text("Send your purchase, e.g. '$500 HKD McDonald's' or '買衫 $800'.")


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    text = update.message.text or ""
    try:
        result = orchestrator.recommend(RecommendRequest(message=text))
    except (FileNotFoundError, CatalogError) as exc:
        logger.error("Card catalog unavailable: %s", exc)
        await update.message.reply_text("Card data is unavailable right now, please try again later.")
        return
    except ValueError as exc:
        await update.message.reply_text(f"Parse failed: {exc}")
        return
    await update.message.reply_text(result.to_text())


def main() -> None:
    if not settings.telegram_bot_token:
        raise ValueError("TELEGRAM_BOT_TOKEN is required.")

    configure_logging()
    app = Application.builder().token(settings.telegram_bot_token).build()
    app.add_handler(CommandHandler("start", start))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    app.run_polling()


if __name__ == "__main__":
    main()
