"""
Gemini Models - Request/Response types for Gemini API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GeminiConfig(BaseModel):
    """Configuration for Gemini client."""

    model: str = Field(default="gemini-3-flash-preview")
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=8192)
    timeout_seconds: int = Field(default=120)
    rate_limit_rpm: int = Field(default=60, ge=1)

    model_config = {"frozen": True}


class InlineImage(BaseModel):
    """Image payload sent inline with a request."""

    mime_type: str = "image/jpeg"
    data: bytes

    model_config = {"frozen": True}

    def to_part(self) -> dict[str, object]:
        """Convert to a generate_content blob part."""
        return {"mime_type": self.mime_type, "data": self.data}


class GeminiResponse(BaseModel):
    """Generic Gemini API response."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    finish_reason: str = "STOP"
