from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cardpick.agents.orchestrator import RecommendationOrchestrator
from cardpick.api.app import app
from cardpick.api.routes import cards as cards_route
from cardpick.api.routes import recommend as recommend_route
from cardpick.nlp.parser import TransactionParseError
from cardpick.repository.card_store import CardStore
from cardpick.schemas.requests import RecommendRequest

SAMPLE_CATALOG = Path(__file__).resolve().parents[1] / "data" / "cards" / "sample_cards.json"


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    store = CardStore(SAMPLE_CATALOG)
    monkeypatch.setattr(cards_route, "card_store", store)
    monkeypatch.setattr(recommend_route, "orchestrator", RecommendationOrchestrator(store, "HKD"))
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_cards_hides_inactive(client: TestClient) -> None:
    active = client.get("/cards").json()
    everything = client.get("/cards", params={"active_only": False}).json()

    assert "legacy-rewards" not in [card["id"] for card in active]
    assert len(everything) == 5
    assert "is_active" in everything[0]


def test_card_stats(client: TestClient) -> None:
    response = client.get("/cards/stats")

    assert response.status_code == 200
    assert response.json()["active_cards"] == 4


def test_recommend_from_message(client: TestClient) -> None:
    response = client.post(
        "/recommend",
        json={"message": "$200 supermarket", "preferences": {"preferred_reward_units": ["cash"]}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["best_card"]["card"]["id"] == "citi-cash-back"
    assert body["parsed_transaction"]["category"] == "supermarket"
    assert body["total_cards_evaluated"] == 5
    assert body["eligible_cards_count"] == 4
    assert body["policy_evidence"]


def test_recommend_from_structured_fields(client: TestClient) -> None:
    response = client.post(
        "/recommend",
        json={
            "amount": 2000,
            "category": "online-shopping",
            "payment_type": "online",
            "preferences": {"preferredRewardUnits": ["cash"], "monthlySpending": 9000},
        },
    )

    best = response.json()["best_card"]
    assert best["card"]["id"] == "hsbc-red"
    assert best["calculation"]["reward_amount"] == pytest.approx(44)


def test_recommend_without_amount_is_bad_request(client: TestClient) -> None:
    assert client.post("/recommend", json={}).status_code == 400
    assert client.post("/recommend", json={"message": "lunch somewhere"}).status_code == 400


def test_recommend_rejects_non_positive_amount(client: TestClient) -> None:
    negative = client.post("/recommend", json={"amount": -100, "category": "dining"})
    zero = client.post("/recommend", json={"amount": 0})

    assert negative.status_code == 400
    assert "positive" in negative.json()["detail"]
    assert zero.status_code == 400


def test_orchestrator_rejects_negative_amount() -> None:
    orchestrator = RecommendationOrchestrator(CardStore(SAMPLE_CATALOG))

    with pytest.raises(TransactionParseError):
        orchestrator.recommend(RecommendRequest(amount=-1000, category="dining"))


def test_recommend_with_missing_catalog(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    broken = RecommendationOrchestrator(CardStore(tmp_path / "missing.json"))
    monkeypatch.setattr(recommend_route, "orchestrator", broken)

    response = TestClient(app).post("/recommend", json={"amount": 100})

    assert response.status_code == 503


def test_orchestrator_text_summary() -> None:
    orchestrator = RecommendationOrchestrator(CardStore(SAMPLE_CATALOG))
    request = RecommendRequest(amount=200, category="supermarket")
    request.preferences.preferred_reward_units = ["cash"]

    text = orchestrator.recommend(request).to_text()

    assert text.startswith("Best card: Citi Cash Back Card (Citibank)")
    assert "Reward: $2.00 at 1.00%" in text
    assert "Transaction: 200.00 HKD / supermarket" in text
    assert "Alternatives:" in text


def test_orchestrator_without_eligible_cards() -> None:
    orchestrator = RecommendationOrchestrator(CardStore(SAMPLE_CATALOG))
    request = RecommendRequest(amount=50, preferences={"preferred_reward_units": ["points"]})

    response = orchestrator.recommend(request)

    assert response.best_card is None
    assert response.policy_evidence == []
    assert response.to_text().endswith("No eligible card for this transaction.")
