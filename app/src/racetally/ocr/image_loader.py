"""Utility helpers for loading and validating result screenshots."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from hashlib import sha256
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

from PIL import Image

from ..errors import ImageLoaderError

ImageSource = str | Path | bytes | BinaryIO


@dataclass(frozen=True)
class ImageLoaderConfig:
    """Configuration knobs for the loader."""

    max_bytes: int = 20 * 1024 * 1024
    allowed_formats: tuple[str, ...] = ("PNG", "JPEG", "WEBP")


@dataclass(frozen=True)
class LoadedImage:
    """Raw screenshot bytes plus the metadata needed to send and cache them."""

    raw_bytes: bytes
    format: str
    width: int
    height: int
    sha256: str
    source_path: Path | None = None

    @property
    def mime_type(self) -> str:
        return f"image/{self.format.lower() or 'jpeg'}"

    def to_base64(self) -> str:
        return base64.b64encode(self.raw_bytes).decode("utf-8")


def load_screenshot(
    source: ImageSource,
    *,
    config: ImageLoaderConfig | None = None,
) -> LoadedImage:
    """Load a screenshot from disk, bytes, a file-like object or a data URL."""

    cfg = config or ImageLoaderConfig()
    raw_bytes, source_path = _read_source(source, cfg.max_bytes)

    try:
        with Image.open(BytesIO(raw_bytes)) as img:
            image_format = (img.format or "").upper()
            width, height = img.size
    except (Image.UnidentifiedImageError, OSError) as exc:
        raise ImageLoaderError("Unable to decode image data") from exc

    if cfg.allowed_formats and image_format not in cfg.allowed_formats:
        raise ImageLoaderError(
            f"Unsupported image format '{image_format or 'unknown'}'; "
            f"expected one of {cfg.allowed_formats}"
        )

    return LoadedImage(
        raw_bytes=raw_bytes,
        format=image_format,
        width=width,
        height=height,
        sha256=sha256(raw_bytes).hexdigest(),
        source_path=source_path,
    )


def decode_data_url(value: str) -> bytes:
    """Decode ``data:image/...;base64,...`` or a bare base64 string."""
    payload = value.split("base64,", 1)[1] if "base64," in value else value
    try:
        return base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageLoaderError("Image payload is not valid base64") from exc


def _read_source(source: ImageSource, max_bytes: int) -> tuple[bytes, Path | None]:
    if isinstance(source, str) and source.startswith("data:"):
        return _validate_size(decode_data_url(source), max_bytes), None

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise ImageLoaderError(f"Screenshot not found: {path}")
        return _validate_size(path.read_bytes(), max_bytes), path

    if isinstance(source, bytes):
        return _validate_size(source, max_bytes), None

    if hasattr(source, "read"):
        data = source.read()
        if isinstance(data, str):  # pragma: no cover
            data = data.encode()
        return _validate_size(data, max_bytes), None

    raise ImageLoaderError(f"Unsupported source type: {type(source)!r}")


def _validate_size(data: bytes, max_bytes: int) -> bytes:
    if not data:
        raise ImageLoaderError("Image payload is empty")
    if len(data) > max_bytes:
        raise ImageLoaderError(
            f"Image payload exceeds {max_bytes} bytes (received {len(data)} bytes)"
        )
    return data
