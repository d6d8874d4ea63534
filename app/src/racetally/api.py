"""FastAPI application exposing the score session."""
from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache
from typing import TypeVar

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from . import __version__
from .db.enums import ScoreMode
from .errors import ImageLoaderError
from .ocr.image_loader import decode_data_url
from .schemas import ScoreLedgerEntry
from .scoreboard import Scoreboard, build_default_scoreboard
from .settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

app = FastAPI(
    title="RaceTally",
    description="Race result OCR and team score tracking.",
    version=__version__,
)


@lru_cache(maxsize=1)
def get_scoreboard() -> Scoreboard:
    return build_default_scoreboard()


class AnalyzeRequest(BaseModel):
    image: str = Field(..., description="data:image/...;base64,... URL or bare base64")
    use_total_score: bool = False
    current_team: str | None = None


class CurrentTeamRequest(BaseModel):
    name: str


class SlotRequest(BaseModel):
    slot_id: int
    name: str = ""


@app.on_event("startup")
def startup_event() -> None:
    get_scoreboard().reset_on_startup(settings.keep_score_on_restart)


@app.get("/health", summary="Simple health check")
def healthcheck(scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    return {"status": "ok", "analyzing": scoreboard.analyzer.is_busy}


@app.post("/api/analyze", summary="Analyze an uploaded result screenshot")
def analyze_upload(
    file: UploadFile = File(...),
    use_total_score: bool = Form(False),
    current_team: str | None = Form(None),
    scoreboard: Scoreboard = Depends(get_scoreboard),
) -> dict[str, object]:
    update = scoreboard.process_screenshot(
        file.file.read(),
        ScoreMode.from_flag(use_total_score),
        manual_current_team=current_team or None,
    )
    return update.model_dump(by_alias=True, mode="json")


@app.post("/api/analyze/data-url", summary="Analyze a base64 encoded result screenshot")
def analyze_data_url(
    request: AnalyzeRequest,
    scoreboard: Scoreboard = Depends(get_scoreboard),
) -> dict[str, object]:
    try:
        image = decode_data_url(request.image)
    except ImageLoaderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    update = scoreboard.process_screenshot(
        image,
        ScoreMode.from_flag(request.use_total_score),
        manual_current_team=request.current_team or None,
    )
    return update.model_dump(by_alias=True, mode="json")


@app.get("/api/scores", summary="Current standings")
def get_scores(scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    return scoreboard.snapshot().model_dump(by_alias=True, mode="json")


@app.post("/api/scores", summary="Replace standings with hand-edited rows")
def save_scores(
    entries: list[ScoreLedgerEntry],
    scoreboard: Scoreboard = Depends(get_scoreboard),
) -> dict[str, object]:
    saved = scoreboard.save_manual_scores(entries)
    return {"success": True, "scores": [entry.model_dump(by_alias=True) for entry in saved]}


@app.post("/api/scores/reset", summary="Clear standings and team mappings")
def reset_scores(scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    scoreboard.reset()
    return {"success": True}


@app.post("/api/scores/current-team", summary="Pin the local player's team")
def set_current_team(
    request: CurrentTeamRequest,
    scoreboard: Scoreboard = Depends(get_scoreboard),
) -> dict[str, object]:
    entries = scoreboard.set_current_team(request.name)
    return {"success": True, "scores": [entry.model_dump(by_alias=True) for entry in entries]}


@app.get("/api/player-mapping", summary="Player name to team mapping")
def get_player_mapping(scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, str]:
    return scoreboard.resolver.current_mappings()


@app.post("/api/player-mapping", summary="Replace the player to team mapping")
def save_player_mapping(
    mapping: dict[str, str],
    scoreboard: Scoreboard = Depends(get_scoreboard),
) -> dict[str, object]:
    return {"success": True, "mapping": scoreboard.replace_mappings(mapping)}


@app.get("/api/slots", summary="Saved score slots")
def list_slots(scoreboard: Scoreboard = Depends(get_scoreboard)) -> list[dict[str, object]]:
    return [slot.model_dump(by_alias=True, mode="json") for slot in scoreboard.list_slots()]


@app.post("/api/slots", summary="Save the current standings into a slot")
def save_slot(
    request: SlotRequest,
    scoreboard: Scoreboard = Depends(get_scoreboard),
) -> dict[str, object]:
    slot = _slot_call(scoreboard.save_slot, request.slot_id, request.name)
    return {
        "success": True,
        "message": f"Saved to slot {request.slot_id + 1}",
        "slot": slot.model_dump(by_alias=True, mode="json"),
    }


@app.get("/api/slots/{slot_id}", summary="Read one slot")
def get_slot(slot_id: int, scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    slot = _slot_call(scoreboard.get_slot, slot_id)
    if slot is None:
        raise HTTPException(status_code=404, detail=f"Slot {slot_id + 1} is empty")
    return slot.model_dump(by_alias=True, mode="json")


@app.delete("/api/slots/{slot_id}", summary="Delete one slot")
def delete_slot(slot_id: int, scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    if not _slot_call(scoreboard.delete_slot, slot_id):
        raise HTTPException(status_code=404, detail=f"Slot {slot_id + 1} is empty")
    return {"success": True, "message": f"Deleted slot {slot_id + 1}"}


@app.post("/api/slots/{slot_id}/load", summary="Replace standings with a slot")
def load_slot(slot_id: int, scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    entries = _slot_call(scoreboard.load_slot, slot_id)
    if entries is None:
        raise HTTPException(status_code=404, detail=f"Slot {slot_id + 1} is empty")
    return {"success": True, "scores": [entry.model_dump(by_alias=True) for entry in entries]}


@app.post("/api/slots/{slot_id}/add", summary="Add a slot's scores to the standings")
def add_slot(slot_id: int, scoreboard: Scoreboard = Depends(get_scoreboard)) -> dict[str, object]:
    entries = _slot_call(scoreboard.add_slot, slot_id)
    if entries is None:
        raise HTTPException(status_code=404, detail=f"Slot {slot_id + 1} is empty")
    return {"success": True, "scores": [entry.model_dump(by_alias=True) for entry in entries]}


def _slot_call(func: Callable[..., T], *args: object) -> T:
    try:
        return func(*args)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
