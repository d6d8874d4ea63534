"""OCR toolkit exports."""
from .dataset import ScreenshotSample, discover_samples, load_manifest
from .image_loader import ImageLoaderConfig, LoadedImage, decode_data_url, load_screenshot

__all__ = [
    "ImageLoaderConfig",
    "LoadedImage",
    "decode_data_url",
    "load_screenshot",
    "ScreenshotSample",
    "discover_samples",
    "load_manifest",
]
