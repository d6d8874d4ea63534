"""Player name cleanup and prefix helpers used for team detection."""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

# C0/C1 control characters plus zero-width space/non-joiner/joiner and BOM.
INVISIBLE_CHARS = re.compile("[\u0000-\u001f\u007f-\u009f\u200b-\u200d\ufeff]")

MIN_PREFIX_LENGTH = 2


def normalize_name(raw: str | None) -> str:
    """Return the form of an OCR'd name used for every key and comparison."""
    if not raw:
        return ""
    return INVISIBLE_CHARS.sub("", raw).strip()


def initial_key(name: str) -> str:
    """Upper-cased first character, the grouping key for team detection."""
    return name[:1].upper()


def longest_common_prefix(names: Sequence[str]) -> str:
    """
    Longest prefix shared by every name.

    A single name is returned whole; callers decide whether to shorten it.
    The comparison is case-sensitive.
    """
    if not names:
        return ""
    if len(names) == 1:
        return names[0]

    first = names[0]
    prefix: list[str] = []
    for index, char in enumerate(first):
        if any(index >= len(other) or other[index] != char for other in names[1:]):
            break
        prefix.append(char)
    return "".join(prefix)


def group_by_initial(names: Iterable[str]) -> dict[str, list[str]]:
    """Group distinct non-empty names by initial, members sorted by name."""
    groups: dict[str, list[str]] = {}
    for name in sorted(set(names)):
        if not name:
            continue
        groups.setdefault(initial_key(name), []).append(name)
    return groups
