"""One OCR + team resolution cycle per screenshot."""
from __future__ import annotations

import logging
import threading

import httpx

from ..db.enums import ScoreMode
from ..errors import AnalyzerBusyError, RaceTallyError
from ..identity.resolver import IdentityResolver
from ..schemas import AnalysisResult
from .ai_client import ResultExtractor
from .image_loader import ImageLoaderConfig, ImageSource, load_screenshot

logger = logging.getLogger(__name__)


class RaceAnalyzer:
    """
    Runs the vision extraction and the identity resolver for one screenshot.

    Only one analysis runs at a time; a concurrent call fails immediately with
    a "busy" result. The last successful result is cached by image hash and
    mode, and served again for an identical per-race screenshot. Total-score
    screenshots are always recomputed because they follow a mapping reset.
    """

    def __init__(
        self,
        extractor: ResultExtractor,
        resolver: IdentityResolver,
        *,
        loader_config: ImageLoaderConfig | None = None,
    ) -> None:
        self.extractor = extractor
        self.resolver = resolver
        self.loader_config = loader_config or ImageLoaderConfig()
        self._busy = threading.Lock()
        self._last_result: tuple[str, AnalysisResult] | None = None

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    def analyze(self, image: ImageSource, mode: ScoreMode = ScoreMode.PER_RACE) -> AnalysisResult:
        if not self._busy.acquire(blocking=False):
            error = AnalyzerBusyError()
            return AnalysisResult.failure(str(error), error.code)

        try:
            return self._analyze(image, mode)
        except RaceTallyError as exc:
            logger.warning("Screenshot analysis failed (%s): %s", exc.code, exc)
            return AnalysisResult.failure(str(exc), exc.code)
        except httpx.HTTPError as exc:
            logger.error("Vision request transport error: %s", exc)
            return AnalysisResult.failure(f"Vision request failed: {exc}", "transport")
        finally:
            self._busy.release()

    def clear_cache(self) -> None:
        self._last_result = None

    def _analyze(self, image: ImageSource, mode: ScoreMode) -> AnalysisResult:
        loaded = load_screenshot(image, config=self.loader_config)
        cache_key = f"{loaded.sha256}_{mode.value}"

        if mode is ScoreMode.PER_RACE and self._last_result is not None:
            last_key, last_result = self._last_result
            if last_key == cache_key:
                logger.info("Skipping vision request: screenshot is identical to the last analysis")
                return last_result.model_copy(deep=True)

        mappings = self.resolver.current_mappings()
        raw_results = self.extractor.extract_results(loaded, mode, mappings)
        results = self.resolver.resolve(raw_results)
        logger.info("Analyzed %s screenshot: %d players", mode.value, len(results))

        result = AnalysisResult(success=True, results=results)
        self._last_result = (cache_key, result.model_copy(deep=True))
        return result
