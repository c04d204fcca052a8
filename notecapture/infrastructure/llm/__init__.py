"""Generative text services."""

from .cleanup import CleanedText, TextCleanupClient, strip_code_fences

__all__ = ["CleanedText", "TextCleanupClient", "strip_code_fences"]
