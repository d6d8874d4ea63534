"""Vision model client for reading race result screens."""
from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx
from openai import OpenAI, OpenAIError
from pydantic import TypeAdapter, ValidationError

from ..db.enums import ScoreMode
from ..errors import ExtractionError, ExtractorConfigError, NotAResultScreenError, ResponseParseError
from ..schemas import MAX_PLAYERS, RawPlayerResult
from ..settings import DEFAULT_MODELS, Settings, settings as default_settings
from .image_loader import LoadedImage
from .prompts import build_prompt

logger = logging.getLogger(__name__)

PROVIDER_BASE_URLS = {
    "openai": None,
    "groq": "https://api.groq.com/openai/v1",
}

_FENCE = re.compile(r"```(?:json)?\s*|\s*```")
_RESULTS_ADAPTER = TypeAdapter(list[RawPlayerResult])


class ResultExtractor(ABC):
    """Turns a screenshot into raw per-player rows."""

    @abstractmethod
    def extract_results(
        self,
        image: LoadedImage,
        mode: ScoreMode,
        mappings: Mapping[str, str],
    ) -> list[RawPlayerResult]:  # pragma: no cover
        raise NotImplementedError


class OpenAIVisionExtractor(ResultExtractor):
    """Calls an OpenAI-compatible vision model (OpenAI or Groq) for the result rows."""

    def __init__(
        self,
        provider: str = "groq",
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        if provider not in PROVIDER_BASE_URLS:
            raise ExtractorConfigError(f"Unknown AI provider '{provider}'")
        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]
        self.api_key = api_key
        self.timeout = timeout
        self._client: OpenAI | None = None

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "OpenAIVisionExtractor":
        cfg = config or default_settings
        api_key = cfg.groq_api_key if cfg.ai_provider == "groq" else cfg.openai_api_key
        return cls(
            provider=cfg.ai_provider,
            model=cfg.resolved_model,
            api_key=api_key,
            timeout=cfg.ai_ocr_timeout,
        )

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise ExtractorConfigError(f"No API key configured for provider '{self.provider}'; cannot run AI OCR")
            try:
                self._client = OpenAI(
                    api_key=self.api_key,
                    base_url=PROVIDER_BASE_URLS[self.provider],
                    http_client=httpx.Client(timeout=self.timeout),
                )
            except OpenAIError as exc:  # pragma: no cover
                raise ExtractorConfigError(f"Failed to initialise {self.provider} client: {exc}") from exc
        return self._client

    def extract_results(
        self,
        image: LoadedImage,
        mode: ScoreMode,
        mappings: Mapping[str, str],
    ) -> list[RawPlayerResult]:
        prompt = build_prompt(mode, mappings)
        try:
            response_data = self._call_openai_with_prompt(image, prompt)
        except OpenAIError as exc:
            raise ExtractionError(f"{self.provider} vision request failed: {exc}") from exc

        try:
            raw = response_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ResponseParseError("Vision response did not contain a message") from exc
        return parse_results_payload(raw)

    def _call_openai_with_prompt(self, image: LoadedImage, prompt: str) -> dict[str, Any]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{image.mime_type};base64,{image.to_base64()}"},
                        },
                    ],
                }
            ],
            response_format={"type": "json_object"},
            temperature=0.1,
        )
        return response.model_dump()


def parse_results_payload(raw: str | None) -> list[RawPlayerResult]:
    """Validate the model's JSON answer into result rows."""
    if not raw:
        raise ResponseParseError("Vision model returned an empty response")

    text = _FENCE.sub("", raw).strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse vision response: %s", text[:200])
        raise ResponseParseError("Could not parse the vision model response as JSON") from exc

    if not isinstance(payload, dict):
        raise ResponseParseError("Vision response is not a JSON object")
    if payload.get("error"):
        raise NotAResultScreenError(str(payload["error"]))

    rows = payload.get("results")
    if not isinstance(rows, list):
        raise ResponseParseError("Vision response has no 'results' list")

    try:
        results = _RESULTS_ADAPTER.validate_python(rows)
    except ValidationError as exc:
        raise ResponseParseError(f"Vision response rows are malformed: {exc.error_count()} error(s)") from exc

    if len(results) > MAX_PLAYERS:
        logger.warning("AI OCR returned %s rows, keeping the first %s", len(results), MAX_PLAYERS)
        results = results[:MAX_PLAYERS]
    return results


def build_extractor(config: Settings | None = None) -> ResultExtractor:
    """Extractor for the configured ``AI_PROVIDER``."""
    cfg = config or default_settings
    if cfg.ai_provider == "gemini":
        from .gemini_client import GeminiVisionExtractor

        return GeminiVisionExtractor.from_settings(cfg)
    return OpenAIVisionExtractor.from_settings(cfg)
