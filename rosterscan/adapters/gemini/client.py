"""
Gemini Client - Google Gemini API client.

This is the SINGLE source of truth for all Gemini API interactions.

Authentication:
- Uses an API key supplied through the environment (GEMINI_API_KEY)
- The key is shape-checked before any request is attempted

Features:
- Schema-constrained JSON output (response_mime_type + response_schema)
- Client-side request pacing (requests per minute)
- Classification of upstream failures into the error taxonomy

There is deliberately no automatic retry: rate limits and outages are
reported to the user, who retries manually.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as api_exceptions

from rosterscan.config.errors import (
    AuthenticationInvalidError,
    AuthenticationMissingError,
    AuthorizationDeniedError,
    ExtractionServiceError,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownServiceError,
)
from rosterscan.config.settings import credential_status

from .models import GeminiConfig, GeminiResponse, InlineImage

logger = logging.getLogger(__name__)

__all__ = ["GeminiClient", "classify_error"]


class GeminiClient:
    """
    Gemini API client for schema-constrained extraction.

    Example:
        >>> client = GeminiClient(api_key=settings.gemini_api_key)
        >>> response = await client.generate_structured(
        ...     prompt="Extract the table",
        ...     images=[InlineImage(data=jpeg_bytes)],
        ...     response_schema=list[RosterRow],
        ... )
        >>> print(response.text)
    """

    def __init__(
        self,
        api_key: str | None,
        config: GeminiConfig | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        The SDK is configured lazily, so a missing key only fails when a
        request is attempted.

        Args:
            api_key: Gemini API key
            config: Client configuration. Uses defaults if None.
        """
        self.config = config or GeminiConfig()
        self._api_key = (api_key or "").strip()
        self._configured = False

        # Rate limiting state
        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()

        # Model instances keyed by system instruction and schema
        self._models: dict[tuple[str, str], genai.GenerativeModel] = {}

        logger.info(
            "GeminiClient initialized: model=%s, credential=%s",
            self.config.model,
            credential_status(self._api_key),
        )

    @property
    def model(self) -> str:
        """Configured model name."""
        return self.config.model

    def ensure_credentials(self) -> None:
        """
        Check the API key before any request.

        Raises:
            AuthenticationMissingError: Key is empty, too short or a placeholder
        """
        if credential_status(self._api_key) != "configured":
            raise AuthenticationMissingError(
                "API key not found. Set GEMINI_API_KEY in the environment and redeploy."
            )
        if not self._configured:
            genai.configure(api_key=self._api_key)
            self._configured = True

    def _get_model(
        self,
        system_instruction: str | None,
        response_schema: Any,
    ) -> genai.GenerativeModel:
        """Get or create model instance."""
        key = (system_instruction or "", repr(response_schema))
        model = self._models.get(key)
        if model is None:
            generation_config = genai.GenerationConfig(
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
                response_mime_type="application/json",
                response_schema=response_schema,
            )
            model = genai.GenerativeModel(
                model_name=self.config.model,
                system_instruction=system_instruction,
                generation_config=generation_config,
            )
            self._models[key] = model
        return model

    async def _check_rate_limit(self) -> None:
        """Enforce rate limiting."""
        async with self._rate_lock:
            now = time.time()
            # Remove requests older than 1 minute
            self._request_times = [t for t in self._request_times if now - t < 60]

            if len(self._request_times) >= self.config.rate_limit_rpm:
                wait_time = 60 - (now - self._request_times[0])
                if wait_time > 0:
                    logger.warning("Rate limit reached, waiting %.1fs", wait_time)
                    await asyncio.sleep(wait_time)

            self._request_times.append(time.time())

    async def generate_structured(
        self,
        prompt: str,
        response_schema: Any,
        images: list[InlineImage] | None = None,
        system_instruction: str | None = None,
    ) -> GeminiResponse:
        """
        Generate JSON constrained to a response schema.

        Args:
            prompt: Text part of the request
            response_schema: Schema the output must conform to
            images: Inline images placed before the text part
            system_instruction: Optional system instruction

        Returns:
            GeminiResponse whose text is the raw JSON (possibly empty)

        Raises:
            ExtractionServiceError: Classified failure (see classify_error)
        """
        self.ensure_credentials()
        await self._check_rate_limit()

        contents: list[Any] = [image.to_part() for image in images or []]
        contents.append(prompt)

        try:
            model = self._get_model(system_instruction, response_schema)
            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                request_options={"timeout": self.config.timeout_seconds},
            )
        except Exception as e:
            error = classify_error(e)
            logger.error("Gemini request failed: %s", error)
            raise error from e

        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = getattr(usage, "prompt_token_count", 0) if usage else 0
        completion_tokens = getattr(usage, "candidates_token_count", 0) if usage else 0

        return GeminiResponse(
            text=_response_text(response),
            model=self.config.model,
            prompt_tokens=prompt_tokens or 0,
            completion_tokens=completion_tokens or 0,
            total_tokens=(prompt_tokens or 0) + (completion_tokens or 0),
            finish_reason=_finish_reason(response),
        )


def _response_text(response: Any) -> str:
    """Read response text; a response without parts has no text."""
    try:
        return response.text or ""
    except ValueError as e:
        # Raised by the SDK when the candidate carries no parts
        logger.warning("Gemini response has no text: %s", e)
        return ""


def _finish_reason(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    try:
        reason = getattr(candidates[0], "finish_reason", None)
    except (IndexError, TypeError):
        return "STOP"
    return getattr(reason, "name", None) or str(reason or "STOP")


def classify_error(error: Exception) -> ExtractionServiceError:
    """
    Map an upstream exception onto the error taxonomy.

    Typed google.api_core exceptions are checked first, then status codes
    and reason strings found in the message.

    Args:
        error: Exception raised by the SDK

    Returns:
        Classified error carrying the upstream message
    """
    if isinstance(error, ExtractionServiceError):
        return error

    message = str(error) or error.__class__.__name__
    details = {"upstream": error.__class__.__name__}

    if isinstance(error, api_exceptions.Unauthenticated):
        return AuthenticationInvalidError(message, details)
    if isinstance(error, api_exceptions.PermissionDenied):
        if _mentions_invalid_key(message):
            return AuthenticationInvalidError(message, details)
        return AuthorizationDeniedError(message, details)
    if isinstance(error, (api_exceptions.ResourceExhausted, api_exceptions.TooManyRequests)):
        return RateLimitedError(message, details)
    if isinstance(
        error,
        (
            api_exceptions.ServiceUnavailable,
            api_exceptions.InternalServerError,
            api_exceptions.DeadlineExceeded,
        ),
    ):
        return ServiceUnavailableError(message, details)
    if isinstance(error, api_exceptions.InvalidArgument) and _mentions_invalid_key(message):
        return AuthenticationInvalidError(message, details)

    lowered = message.lower()
    if "429" in lowered or "resource_exhausted" in lowered:
        return RateLimitedError(message, details)
    if "401" in lowered or _mentions_invalid_key(message):
        return AuthenticationInvalidError(message, details)
    if "403" in lowered:
        return AuthorizationDeniedError(message, details)
    if "500" in lowered or "503" in lowered:
        return ServiceUnavailableError(message, details)
    return UnknownServiceError(message, details)


def _mentions_invalid_key(message: str) -> bool:
    lowered = message.lower()
    return (
        "api_key_invalid" in lowered
        or "api key not valid" in lowered
        or "api key expired" in lowered
    )
