"""CLI to replay a recorded session (manifest or screenshot directory) through the scoreboard."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from ..ocr import discover_samples, load_manifest
from ..scoreboard import build_default_scoreboard


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a recorded session of result screenshots")
    parser.add_argument("source", type=Path, help="Screenshot manifest YAML, or a directory of race screenshots")
    parser.add_argument("--limit", type=int, default=None, help="Optional limit on number of screenshots")
    parser.add_argument("--reset", action="store_true", help="Start from empty standings and mappings")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    scoreboard = build_default_scoreboard()
    if args.reset:
        scoreboard.reset()

    samples = discover_samples(args.source) if args.source.is_dir() else load_manifest(args.source)
    if args.limit is not None:
        samples = samples[: args.limit]

    for sample in samples:
        update = scoreboard.process_screenshot(sample.path, sample.mode)
        output = {
            "file": str(sample.path),
            "mode": sample.mode.value,
            "note": sample.note,
            "success": update.success,
            "error": update.error,
            "scores": [entry.model_dump(by_alias=True) for entry in update.scores],
        }
        print(json.dumps(output, ensure_ascii=False))

    snapshot = scoreboard.snapshot()
    print(json.dumps({"final": snapshot.model_dump(by_alias=True, mode="json")}, ensure_ascii=False))


if __name__ == "__main__":
    main()
