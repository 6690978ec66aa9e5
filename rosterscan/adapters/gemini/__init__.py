"""
Gemini Adapter - Google Gemini API client.

This is the ONLY place that calls the Gemini API.
The extraction domain uses this adapter for all model requests.
"""

from .client import GeminiClient, classify_error
from .models import GeminiConfig, GeminiResponse, InlineImage

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    "InlineImage",
    "classify_error",
]
