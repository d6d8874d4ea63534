"""Race result OCR and team score tracking."""

__version__ = "0.3.0"
