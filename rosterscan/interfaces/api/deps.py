"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the pipeline and the review session.
"""

from __future__ import annotations

from functools import lru_cache

from rosterscan.adapters.gemini import GeminiClient, GeminiConfig
from rosterscan.config import get_settings
from rosterscan.domains.extraction import RosterExtractor
from rosterscan.domains.ingestion import DocumentLoader
from rosterscan.domains.orchestration import (
    ExtractionPipeline,
    FailurePolicy,
    ReviewSession,
)


@lru_cache
def get_gemini_client() -> GeminiClient:
    """Get Gemini client singleton."""
    settings = get_settings()
    config = GeminiConfig(
        model=settings.gemini_model,
        temperature=settings.gemini_temperature,
        timeout_seconds=settings.gemini_timeout_seconds,
        rate_limit_rpm=settings.gemini_rate_limit_rpm,
    )
    return GeminiClient(api_key=settings.gemini_api_key, config=config)


@lru_cache
def get_pipeline() -> ExtractionPipeline:
    """Get extraction pipeline singleton."""
    settings = get_settings()
    return ExtractionPipeline(
        loader=DocumentLoader(
            render_scale=settings.render_scale,
            jpeg_quality=settings.jpeg_quality,
        ),
        extractor=RosterExtractor(get_gemini_client()),
        policy=FailurePolicy(settings.failure_policy),
    )


@lru_cache
def get_session() -> ReviewSession:
    """Get review session singleton (one session per process)."""
    return ReviewSession(get_pipeline())
