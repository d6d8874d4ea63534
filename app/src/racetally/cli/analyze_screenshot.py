"""CLI to analyze one result screenshot and print the resolved rows as JSON."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from ..db.enums import ScoreMode
from ..scoreboard import build_default_scoreboard


def main() -> None:
    parser = argparse.ArgumentParser(description="Analyze a race result screenshot")
    parser.add_argument("image", type=Path, help="Path to the screenshot (PNG/JPEG)")
    parser.add_argument("--total-score", action="store_true", help="Read the overall standings screen instead of a race result")
    parser.add_argument("--apply", action="store_true", help="Also fold the result into the stored standings")
    parser.add_argument("--current-team", default=None, help="Pin this team as the local player's team")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    scoreboard = build_default_scoreboard()
    mode = ScoreMode.from_flag(args.total_score)
    if args.apply:
        outcome = scoreboard.process_screenshot(args.image, mode, manual_current_team=args.current_team)
    else:
        outcome = scoreboard.analyzer.analyze(args.image, mode)

    print(json.dumps(outcome.model_dump(by_alias=True, mode="json"), ensure_ascii=False))
    if not outcome.success:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
