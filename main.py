import argparse

from cardpick.agents.orchestrator import RecommendationOrchestrator
from cardpick.api.app import run as run_api
from cardpick.config import configure_logging, settings
from cardpick.integrations.telegram_bot import main as run_bot
from cardpick.repository.card_store import CardStore
from cardpick.schemas.requests import RecommendRequest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CardPick unified entrypoint")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["api", "bot", "recommend"],
        default="api",
        help="Run mode: api (default), bot, recommend",
    )
    parser.add_argument("message", nargs="*", help="Purchase description for recommend mode")
    parser.add_argument("--monthly-spending", type=float, default=None, help="Spend so far this month")
    parser.add_argument("--top", type=int, default=3, help="Cards to list in recommend mode")
    return parser


def run_recommend(message: str, monthly_spending: float | None, top: int) -> None:
    configure_logging()
    orchestrator = RecommendationOrchestrator(CardStore(settings.card_catalog_file), settings.home_currency)
    request = RecommendRequest(message=message)
    request.preferences.monthly_spending = monthly_spending
    print(orchestrator.recommend(request).to_text(top=top))


def main() -> None:
    args = build_parser().parse_args()

    if args.mode == "api":
        run_api()
        return

    if args.mode == "bot":
        run_bot()
        return

    if not args.message:
        build_parser().error("recommend mode needs a purchase description")
    run_recommend(" ".join(args.message), args.monthly_spending, args.top)


if __name__ == "__main__":
    main()
