"""Extraction prompts for the race result screen."""
from __future__ import annotations

from collections.abc import Mapping

from ..db.enums import ScoreMode

TEAM_RULES = """
TEAM RULES (CRITICAL):
- Group players whose names start with the same character (letters are compared upper-cased).
- Within a group, the team name is the longest prefix shared by EVERY player in the group,
  compared one character at a time from the left.
  e.g. "AKSKDfoo" + "AKSKDbar" -> "AKSKD", "ABC123" + "ABD456" -> "AB".
- If the shared prefix is only one character, the team name is that single character.
- Letters in team names are always upper-case.
- If a name is only whitespace or symbols, use "UNKNOWN".
"""

SELF_RULES = """
CURRENT PLAYER:
- The local player's row has a yellow (or orange-yellow) background.
- Set isCurrentPlayer to true for that row only, false for every other row.
"""

RACE_PROMPT = """
You are an OCR + data extraction helper for the game Mario Kart 8 Deluxe.

The user will send you a screenshot of a race result screen.

Each row shows, from left to right:
- Finishing position (1st..12th, or just the number)
- Player name
- The player's running point total

Your job:
1. Extract EVERY visible row (at most 12).
2. For each row extract:
   - rank (integer 1-12)
   - name (string, exactly as displayed)
   - team (string, see TEAM RULES)
   - totalScore (integer, the number at the right of the row)
   - isCurrentPlayer (boolean)
{team_rules}{self_rules}{mappings}
Return ONLY JSON in this format:
{{
  "results": [
    {{"rank": <int>, "name": "...", "team": "...", "totalScore": <int>, "isCurrentPlayer": <bool>}}
  ]
}}

If the image is not a race result screen or cannot be read, return instead:
{{"error": "Not a race result screen."}}

No extra commentary.
"""

TOTAL_SCORE_PROMPT = """
You are an OCR + data extraction helper for the game Mario Kart 8 Deluxe.

The user will send you a screenshot of the overall standings screen.

Each row shows a player name and, at the far right, the player's overall point total.

Your job:
1. Extract EVERY visible row (at most 12).
2. For each row extract:
   - name (string, exactly as displayed)
   - team (string, see TEAM RULES)
   - score (integer, the overall total at the far right of the row; this is the priority)
   - isCurrentPlayer (boolean)
{team_rules}{self_rules}{mappings}
Return ONLY JSON in this format:
{{
  "results": [
    {{"name": "...", "team": "...", "score": <int>, "isCurrentPlayer": <bool>}}
  ]
}}

If the image is not a standings screen or cannot be read, return instead:
{{"error": "Not a race result screen."}}

No extra commentary.
"""


def format_existing_mappings(mappings: Mapping[str, str]) -> str:
    if not mappings:
        return ""
    lines = "\n".join(f'- "{player}" -> "{team}"' for player, team in sorted(mappings.items()))
    return (
        "\nKNOWN PLAYERS:\n"
        "These players already have a team. If they appear, use exactly this team name "
        "and do not work it out again:\n"
        f"{lines}\n"
    )


def build_prompt(mode: ScoreMode, mappings: Mapping[str, str] | None = None) -> str:
    template = TOTAL_SCORE_PROMPT if mode is ScoreMode.TOTAL_SCORE else RACE_PROMPT
    return template.format(
        team_rules=TEAM_RULES,
        self_rules=SELF_RULES,
        mappings=format_existing_mappings(mappings or {}),
    )
