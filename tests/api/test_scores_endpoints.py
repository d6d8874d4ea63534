"""Tests for the score session API endpoints."""
from __future__ import annotations

import base64
from io import BytesIO
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from racetally.api import app, get_scoreboard
from racetally.identity.resolver import IdentityResolver
from racetally.ocr.ai_client import ResultExtractor
from racetally.ocr.analyzer import RaceAnalyzer
from racetally.schemas import RawPlayerResult
from racetally.scoreboard import Scoreboard
from racetally.stores.memory import (
    InMemoryPlayerMappingStore,
    InMemoryScoreLedgerStore,
    InMemoryScoreSlotStore,
    InMemorySelfPlayerStore,
)


def _make_image_bytes(color=(30, 60, 90)) -> bytes:
    image = Image.new("RGB", (80, 40), color)
    buffer = BytesIO()
    image.save(buffer, "PNG")
    return buffer.getvalue()


class FixedExtractor(ResultExtractor):
    def extract_results(self, image, mode, mappings):
        return [
            RawPlayerResult(rank=1, name="AKSKDfoo", is_current_player=True),
            RawPlayerResult(rank=2, name="AKSKDbar"),
            RawPlayerResult(rank=3, name="Bob"),
        ]


@pytest.fixture
def scoreboard() -> Scoreboard:
    resolver = IdentityResolver(InMemoryPlayerMappingStore(), InMemorySelfPlayerStore())
    return Scoreboard(
        analyzer=RaceAnalyzer(FixedExtractor(), resolver),
        ledger_store=InMemoryScoreLedgerStore(),
        slot_store=InMemoryScoreSlotStore(),
    )


@pytest.fixture
def client(scoreboard: Scoreboard) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_scoreboard] = lambda: scoreboard
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "analyzing": False}


def test_analyze_upload_updates_scores(client: TestClient) -> None:
    response = client.post(
        "/api/analyze",
        files={"file": ("race.png", _make_image_bytes(), "image/png")},
        data={"use_total_score": "false"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["results"][0]["team"] == "AKSKD"
    assert body["results"][0]["isCurrentPlayer"] is True

    scores = client.get("/api/scores").json()
    assert scores["scores"][0] == {"name": "AKSKD", "score": 27, "addedScore": 27, "isCurrentPlayer": True}
    assert scores["isOverallUpdate"] is False
    assert scores["remainingRaces"] == 11
    assert scores["showRemainingRaces"] is True


def test_analyze_data_url(client: TestClient) -> None:
    data_url = "data:image/png;base64," + base64.b64encode(_make_image_bytes()).decode()
    response = client.post("/api/analyze/data-url", json={"image": data_url, "use_total_score": True})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get("/api/scores").json()["isOverallUpdate"] is True


def test_analyze_data_url_rejects_bad_payload(client: TestClient) -> None:
    response = client.post("/api/analyze/data-url", json={"image": "data:image/png;base64,@@@"})
    assert response.status_code == 400


def test_analyze_failure_is_reported_in_body(client: TestClient) -> None:
    response = client.post("/api/analyze", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "invalid_image"


def test_manual_scores_current_team_and_reset(client: TestClient) -> None:
    response = client.post(
        "/api/scores",
        json=[
            {"name": "AKSKD", "score": 40, "addedScore": 5},
            {"team": "BRAVO", "score": "30"},
        ],
    )
    assert response.status_code == 200
    assert [row["addedScore"] for row in response.json()["scores"]] == [0, 0]

    response = client.post("/api/scores/current-team", json={"name": "BRAVO"})
    flagged = [row["name"] for row in response.json()["scores"] if row["isCurrentPlayer"]]
    assert flagged == ["BRAVO"]

    assert client.post("/api/scores/reset").json() == {"success": True}
    assert client.get("/api/scores").json()["scores"] == []


def test_player_mapping_round_trip(client: TestClient) -> None:
    response = client.post("/api/player-mapping", json={"Alice": "AL"})
    assert response.json()["mapping"] == {"Alice": "AL"}
    assert client.get("/api/player-mapping").json() == {"Alice": "AL"}


def test_slot_endpoints(client: TestClient) -> None:
    client.post("/api/scores", json=[{"name": "AKSKD", "score": 100}])

    response = client.post("/api/slots", json={"slot_id": 0, "name": "Cup"})
    assert response.status_code == 200
    assert response.json()["message"] == "Saved to slot 1"

    slots = client.get("/api/slots").json()
    assert [(slot["slotId"], slot["name"], slot["remainingRaces"]) for slot in slots] == [(0, "Cup", 10)]
    assert client.get("/api/slots/0").json()["scores"][0]["score"] == 100

    added = client.post("/api/slots/0/add").json()["scores"]
    assert added[0]["score"] == 200

    loaded = client.post("/api/slots/0/load").json()["scores"]
    assert loaded[0]["score"] == 100

    assert client.delete("/api/slots/0").status_code == 200
    assert client.get("/api/slots/0").status_code == 404
    assert client.delete("/api/slots/0").status_code == 404
    assert client.post("/api/slots/0/load").status_code == 404


def test_slot_id_out_of_range(client: TestClient) -> None:
    assert client.post("/api/slots", json={"slot_id": 12}).status_code == 400
    assert client.get("/api/slots/-1").status_code == 400
