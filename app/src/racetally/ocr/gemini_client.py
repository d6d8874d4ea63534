"""Gemini vision extractor with API key rotation."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..db.enums import ScoreMode
from ..errors import ExtractionError, ExtractorConfigError
from ..schemas import RawPlayerResult
from ..settings import DEFAULT_MODELS, Settings, settings as default_settings
from .ai_client import ResultExtractor, parse_results_payload
from .image_loader import LoadedImage
from .prompts import build_prompt

logger = logging.getLogger(__name__)

RATE_LIMITED = 429


class GeminiVisionExtractor(ResultExtractor):
    """
    Calls Gemini through the Google GenAI SDK.

    Several API keys can be configured. A key that keeps answering 429 after
    ``max_attempts`` tries (with exponential backoff) is skipped in favour of
    the next one; any other API error fails the extraction immediately.
    """

    def __init__(
        self,
        api_keys: Sequence[str],
        model: str | None = None,
        timeout: float = 60.0,
        *,
        max_attempts: int = 2,
        base_delay: float = 2.0,
        client_factory: Callable[[str], genai.Client] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api_keys = [key for key in api_keys if key]
        self.model = model or DEFAULT_MODELS["gemini"]
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._client_factory = client_factory or self._make_client
        self._sleep = sleep
        self._clients: dict[str, genai.Client] = {}

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "GeminiVisionExtractor":
        cfg = config or default_settings
        return cls(api_keys=cfg.gemini_keys, model=cfg.resolved_model, timeout=cfg.ai_ocr_timeout)

    def client_for(self, api_key: str) -> genai.Client:
        if api_key not in self._clients:
            self._clients[api_key] = self._client_factory(api_key)
        return self._clients[api_key]

    def extract_results(
        self,
        image: LoadedImage,
        mode: ScoreMode,
        mappings: Mapping[str, str],
    ) -> list[RawPlayerResult]:
        if not self.api_keys:
            raise ExtractorConfigError("No Gemini API key configured; set GEMINI_API_KEY or GEMINI_API_KEYS")

        prompt = build_prompt(mode, mappings)
        last_error: genai_errors.APIError | None = None
        for key_number, api_key in enumerate(self.api_keys, start=1):
            for attempt in range(self.max_attempts):
                try:
                    raw = self._call_gemini_with_prompt(self.client_for(api_key), image, prompt)
                except genai_errors.APIError as exc:
                    if exc.code != RATE_LIMITED:
                        raise ExtractionError(f"gemini vision request failed: {exc}") from exc
                    last_error = exc
                    if attempt < self.max_attempts - 1:
                        delay = self.base_delay * 2**attempt
                        logger.warning("Gemini key %d rate limited, retrying in %.1fs", key_number, delay)
                        self._sleep(delay)
                        continue
                    logger.warning("Gemini key %d exhausted, trying the next key", key_number)
                    break
                return parse_results_payload(raw)

        raise ExtractionError(
            f"All {len(self.api_keys)} Gemini API key(s) are rate limited: {last_error}"
        ) from last_error

    def _make_client(self, api_key: str) -> genai.Client:
        return genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
        )

    def _call_gemini_with_prompt(self, client: genai.Client, image: LoadedImage, prompt: str) -> str | None:
        response = client.models.generate_content(
            model=self.model,
            contents=[
                prompt,
                types.Part.from_bytes(data=image.raw_bytes, mime_type=image.mime_type),
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                temperature=0.1,
            ),
        )
        return response.text
