"""Database helper exports."""
from . import models  # noqa: F401
from .base import Base

__all__ = ["Base", "models"]
