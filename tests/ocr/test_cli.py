from __future__ import annotations

import json
from io import BytesIO

import pytest
from PIL import Image

from racetally.cli.analyze_screenshot import main as analyze_main
from racetally.cli.replay_session import main as replay_main
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


def _make_image_bytes(size=(100, 50), color=(100, 50, 200), fmt="PNG") -> bytes:
    image = Image.new("RGB", size, color)
    buffer = BytesIO()
    image.save(buffer, fmt)
    return buffer.getvalue()


class FixedExtractor(ResultExtractor):
    def extract_results(self, image, mode, mappings):
        return [
            RawPlayerResult(rank=1, name="AKSKDfoo"),
            RawPlayerResult(rank=2, name="AKSKDbar"),
        ]


def _scoreboard() -> Scoreboard:
    resolver = IdentityResolver(InMemoryPlayerMappingStore(), InMemorySelfPlayerStore())
    return Scoreboard(
        analyzer=RaceAnalyzer(FixedExtractor(), resolver),
        ledger_store=InMemoryScoreLedgerStore(),
        slot_store=InMemoryScoreSlotStore(),
    )


def test_replay_session_cli(tmp_path, monkeypatch, capsys):
    sample_dir = tmp_path / "shots"
    sample_dir.mkdir()
    (sample_dir / "race01.png").write_bytes(_make_image_bytes())
    (sample_dir / "race02.png").write_bytes(_make_image_bytes(color=(1, 2, 3)))

    manifest = sample_dir / "manifest.yaml"
    manifest.write_text(
        """
        samples:
          - file: race01.png
          - file: race02.png
        """.strip()
    )

    monkeypatch.setattr("racetally.cli.replay_session.build_default_scoreboard", _scoreboard)
    monkeypatch.setattr("sys.argv", ["program", str(manifest), "--reset"])

    replay_main()
    lines = capsys.readouterr().out.strip().splitlines()

    assert len(lines) == 3
    assert "race01.png" in lines[0]
    final = json.loads(lines[-1])["final"]
    assert final["scores"][0]["name"] == "AKSKD"
    assert final["scores"][0]["score"] == 54
    assert final["remainingRaces"] == 11


def test_analyze_screenshot_cli(tmp_path, monkeypatch, capsys):
    image = tmp_path / "race.png"
    image.write_bytes(_make_image_bytes())

    monkeypatch.setattr("racetally.cli.analyze_screenshot.build_default_scoreboard", _scoreboard)
    monkeypatch.setattr("sys.argv", ["program", str(image), "--apply"])

    analyze_main()
    output = json.loads(capsys.readouterr().out)

    assert output["success"] is True
    assert output["scores"] == [{"name": "AKSKD", "score": 27, "addedScore": 27, "isCurrentPlayer": False}]


def test_analyze_screenshot_cli_failure_exits_non_zero(tmp_path, monkeypatch, capsys):
    bogus = tmp_path / "notes.png"
    bogus.write_text("not an image")

    monkeypatch.setattr("racetally.cli.analyze_screenshot.build_default_scoreboard", _scoreboard)
    monkeypatch.setattr("sys.argv", ["program", str(bogus)])

    with pytest.raises(SystemExit) as excinfo:
        analyze_main()

    assert excinfo.value.code == 1
    assert json.loads(capsys.readouterr().out)["code"] == "invalid_image"


def test_replay_session_cli_from_directory(tmp_path, monkeypatch, capsys):
    (tmp_path / "race02.png").write_bytes(_make_image_bytes(color=(4, 5, 6)))
    (tmp_path / "race01.png").write_bytes(_make_image_bytes())
    (tmp_path / "readme.txt").write_text("not a screenshot")

    monkeypatch.setattr("racetally.cli.replay_session.build_default_scoreboard", _scoreboard)
    monkeypatch.setattr("sys.argv", ["program", str(tmp_path), "--limit", "1"])

    replay_main()
    lines = capsys.readouterr().out.strip().splitlines()

    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["file"].endswith("race01.png")
    assert first["mode"] == "race"
    assert json.loads(lines[-1])["final"]["scores"][0]["score"] == 27
