from __future__ import annotations

from io import BytesIO

import httpx
from PIL import Image

from racetally.db.enums import ScoreMode
from racetally.errors import NotAResultScreenError
from racetally.identity.resolver import IdentityResolver
from racetally.ocr.ai_client import ResultExtractor
from racetally.ocr.analyzer import RaceAnalyzer
from racetally.schemas import RawPlayerResult
from racetally.stores.memory import InMemoryPlayerMappingStore, InMemorySelfPlayerStore


def _make_image_bytes(size=(64, 32), color=(200, 200, 0), fmt="PNG") -> bytes:
    image = Image.new("RGB", size, color)
    buffer = BytesIO()
    image.save(buffer, fmt)
    return buffer.getvalue()


class StubExtractor(ResultExtractor):
    def __init__(self, rows=None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple[ScoreMode, dict[str, str]]] = []

    def extract_results(self, image, mode, mappings):
        self.calls.append((mode, dict(mappings)))
        if self.error is not None:
            raise self.error
        return [row.model_copy() for row in self.rows]


def _analyzer(extractor: ResultExtractor) -> RaceAnalyzer:
    resolver = IdentityResolver(InMemoryPlayerMappingStore(), InMemorySelfPlayerStore())
    return RaceAnalyzer(extractor, resolver)


ROWS = [
    RawPlayerResult(rank=1, name="AKSKDfoo"),
    RawPlayerResult(rank=2, name="AKSKDbar"),
    RawPlayerResult(rank=3, name="Bob"),
]


def test_analyze_resolves_teams() -> None:
    analyzer = _analyzer(StubExtractor(ROWS))

    result = analyzer.analyze(_make_image_bytes())

    assert result.success is True
    assert [(row.name, row.team) for row in result.results] == [
        ("AKSKDfoo", "AKSKD"),
        ("AKSKDbar", "AKSKD"),
        ("Bob", "B"),
    ]
    assert analyzer.resolver.current_mappings()["Bob"] == "B"


def test_identical_race_screenshot_is_served_from_cache() -> None:
    extractor = StubExtractor(ROWS)
    analyzer = _analyzer(extractor)
    payload = _make_image_bytes()

    first = analyzer.analyze(payload)
    second = analyzer.analyze(payload)

    assert len(extractor.calls) == 1
    assert second.model_dump() == first.model_dump()
    assert second.results[0] is not first.results[0]


def test_cache_passes_known_mappings_to_next_call() -> None:
    extractor = StubExtractor(ROWS)
    analyzer = _analyzer(extractor)

    analyzer.analyze(_make_image_bytes(color=(1, 1, 1)))
    analyzer.analyze(_make_image_bytes(color=(2, 2, 2)))

    assert len(extractor.calls) == 2
    assert extractor.calls[0][1] == {}
    assert extractor.calls[1][1]["AKSKDfoo"] == "AKSKD"


def test_total_score_screenshot_is_never_cached() -> None:
    extractor = StubExtractor(ROWS)
    analyzer = _analyzer(extractor)
    payload = _make_image_bytes()

    analyzer.analyze(payload, ScoreMode.TOTAL_SCORE)
    analyzer.analyze(payload, ScoreMode.TOTAL_SCORE)

    assert len(extractor.calls) == 2


def test_clear_cache_forces_new_call() -> None:
    extractor = StubExtractor(ROWS)
    analyzer = _analyzer(extractor)
    payload = _make_image_bytes()

    analyzer.analyze(payload)
    analyzer.clear_cache()
    analyzer.analyze(payload)

    assert len(extractor.calls) == 2


def test_concurrent_analysis_reports_busy() -> None:
    class ReentrantExtractor(StubExtractor):
        def extract_results(self, image, mode, mappings):
            self.inner = analyzer.analyze(_make_image_bytes(color=(9, 9, 9)))
            return super().extract_results(image, mode, mappings)

    extractor = ReentrantExtractor(ROWS)
    analyzer = _analyzer(extractor)

    outer = analyzer.analyze(_make_image_bytes())

    assert outer.success is True
    assert extractor.inner.success is False
    assert extractor.inner.code == "busy"
    assert analyzer.is_busy is False


def test_failures_become_structured_results() -> None:
    analyzer = _analyzer(StubExtractor(error=NotAResultScreenError("Not a race result screen.")))
    result = analyzer.analyze(_make_image_bytes())
    assert result.success is False
    assert result.code == "not_result_screen"
    assert result.error == "Not a race result screen."
    assert analyzer.is_busy is False

    transport = _analyzer(StubExtractor(error=httpx.ConnectError("connection refused")))
    assert transport.analyze(_make_image_bytes()).code == "transport"

    invalid = _analyzer(StubExtractor(ROWS))
    assert invalid.analyze(b"not an image").code == "invalid_image"
