"""Recorded race nights: the screenshots of one session, in play order."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

from ..db.enums import ScoreMode

SCREENSHOT_PATTERNS = ("*.png", "*.jpg", "*.jpeg", "*.webp")


@dataclass(frozen=True)
class ScreenshotSample:
    path: Path
    mode: ScoreMode = ScoreMode.PER_RACE
    note: str | None = None


def load_manifest(manifest_path: str | Path) -> list[ScreenshotSample]:
    """
    Read a session manifest. File names are relative to the manifest and rows
    without a ``file`` are ignored::

        samples:
          - file: race01.jpg
          - file: standings.jpg
            mode: total
            note: after race 6
    """
    manifest = Path(manifest_path)
    if not manifest.is_file():
        raise FileNotFoundError(f"Manifest not found: {manifest}")

    data = yaml.safe_load(manifest.read_text()) or {}
    rows: list[dict[str, Any]] = data.get("samples") or []
    return [
        ScreenshotSample(
            path=(manifest.parent / row["file"]).resolve(),
            mode=ScoreMode(row.get("mode", ScoreMode.PER_RACE)),
            note=row.get("note"),
        )
        for row in rows
        if row.get("file")
    ]


def discover_samples(
    directory: str | Path,
    *,
    patterns: Iterable[str] = SCREENSHOT_PATTERNS,
    mode: ScoreMode = ScoreMode.PER_RACE,
) -> list[ScreenshotSample]:
    """Every screenshot in ``directory``, ordered by file name."""
    base = Path(directory)
    if not base.is_dir():
        raise NotADirectoryError(f"Screenshot directory not found: {base}")

    paths = sorted({path.resolve() for pattern in patterns for path in base.glob(pattern)})
    return [ScreenshotSample(path=path, mode=mode) for path in paths]
