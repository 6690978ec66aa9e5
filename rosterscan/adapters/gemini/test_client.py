"""
Tests for Gemini Client adapter.
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as api_exceptions

from rosterscan.config.errors import (
    AuthenticationInvalidError,
    AuthenticationMissingError,
    AuthorizationDeniedError,
    ErrorCode,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownServiceError,
)

from .client import GeminiClient, classify_error
from .models import GeminiConfig, GeminiResponse, InlineImage

VALID_KEY = "AIzaSy-test-key-0123456789"


class _NoPartsResponse:
    """Response whose candidate carries no parts."""

    usage_metadata = None
    candidates: list = []

    @property
    def text(self) -> str:
        raise ValueError("no parts")


@pytest.fixture
def mock_genai() -> Generator[MagicMock, None, None]:
    """Mock the google.generativeai module."""
    with patch("rosterscan.adapters.gemini.client.genai") as mock:
        mock_model = MagicMock()
        mock_model.generate_content.return_value = MagicMock(
            text='[{"unitTitle": "A", "name": "B", "supervisorRating": "90"}]',
            usage_metadata=MagicMock(
                prompt_token_count=10,
                candidates_token_count=20,
            ),
            candidates=[],
        )
        mock.GenerativeModel.return_value = mock_model
        yield mock


@pytest.fixture
def client(mock_genai: MagicMock) -> GeminiClient:
    """Create a GeminiClient with mocked dependencies."""
    return GeminiClient(api_key=VALID_KEY)


# --- Model Tests ---


def test_gemini_config_defaults() -> None:
    """Test GeminiConfig default values."""
    config = GeminiConfig()
    assert config.model == "gemini-3-flash-preview"
    assert config.temperature == 1.0
    assert config.timeout_seconds == 120
    assert config.rate_limit_rpm == 60


def test_gemini_config_temperature_validation() -> None:
    """Test GeminiConfig temperature must be between 0 and 2."""
    assert GeminiConfig(temperature=0.0).temperature == 0.0
    with pytest.raises(ValueError):
        GeminiConfig(temperature=2.1)


def test_inline_image_part() -> None:
    """Test InlineImage converts to a blob part."""
    image = InlineImage(data=b"\xff\xd8jpeg")
    assert image.to_part() == {"mime_type": "image/jpeg", "data": b"\xff\xd8jpeg"}


# --- Credential Tests ---


@pytest.mark.parametrize(
    "key",
    ["", "   ", "short", "process.env.API_KEY", "${GEMINI_API_KEY}-value", None],
)
def test_ensure_credentials_rejects_implausible_keys(
    mock_genai: MagicMock, key: str | None
) -> None:
    """Test empty, short and placeholder keys are reported as missing."""
    client = GeminiClient(api_key=key)
    with pytest.raises(AuthenticationMissingError) as exc_info:
        client.ensure_credentials()
    assert exc_info.value.code == ErrorCode.AUTHENTICATION_MISSING
    mock_genai.configure.assert_not_called()


def test_ensure_credentials_configures_sdk_once(mock_genai: MagicMock) -> None:
    """Test a valid key configures the SDK once."""
    client = GeminiClient(api_key=VALID_KEY)
    client.ensure_credentials()
    client.ensure_credentials()
    mock_genai.configure.assert_called_once_with(api_key=VALID_KEY)


async def test_generate_without_key_makes_no_request(mock_genai: MagicMock) -> None:
    """Test a missing key fails before the model is called."""
    client = GeminiClient(api_key="")
    with pytest.raises(AuthenticationMissingError):
        await client.generate_structured("prompt", response_schema=list)
    mock_genai.GenerativeModel.return_value.generate_content.assert_not_called()


# --- Generate Tests ---


async def test_generate_structured_basic(client: GeminiClient) -> None:
    """Test structured generation returns raw JSON text and usage."""
    response = await client.generate_structured("Extract", response_schema=list)
    assert isinstance(response, GeminiResponse)
    assert response.text.startswith("[")
    assert response.prompt_tokens == 10
    assert response.completion_tokens == 20
    assert response.total_tokens == 30


async def test_generate_structured_sends_image_before_text(
    client: GeminiClient, mock_genai: MagicMock
) -> None:
    """Test images are placed before the prompt."""
    await client.generate_structured(
        "Extract",
        response_schema=list,
        images=[InlineImage(data=b"img")],
    )
    contents = mock_genai.GenerativeModel.return_value.generate_content.call_args.args[0]
    assert contents == [{"mime_type": "image/jpeg", "data": b"img"}, "Extract"]


async def test_generate_structured_requests_json_schema(
    client: GeminiClient, mock_genai: MagicMock
) -> None:
    """Test the model is configured for schema-constrained JSON."""
    await client.generate_structured(
        "Extract", response_schema=list, system_instruction="Be exact."
    )
    config_kwargs = mock_genai.GenerationConfig.call_args.kwargs
    assert config_kwargs["response_mime_type"] == "application/json"
    assert config_kwargs["response_schema"] is list
    model_kwargs = mock_genai.GenerativeModel.call_args.kwargs
    assert model_kwargs["system_instruction"] == "Be exact."


async def test_model_instance_is_reused(
    client: GeminiClient, mock_genai: MagicMock
) -> None:
    """Test the same instruction and schema reuse one model."""
    await client.generate_structured("a", response_schema=list, system_instruction="x")
    await client.generate_structured("b", response_schema=list, system_instruction="x")
    assert mock_genai.GenerativeModel.call_count == 1


async def test_response_without_parts_is_empty(
    client: GeminiClient, mock_genai: MagicMock
) -> None:
    """Test a response whose text accessor raises yields empty text."""
    mock_genai.GenerativeModel.return_value.generate_content.return_value = (
        _NoPartsResponse()
    )

    response = await client.generate_structured("Extract", response_schema=list)
    assert response.text == ""


# --- Error Handling Tests ---


async def test_generate_classifies_rate_limit(
    client: GeminiClient, mock_genai: MagicMock
) -> None:
    """Test that rate limit errors from API are classified."""
    mock_model = mock_genai.GenerativeModel.return_value
    mock_model.generate_content.side_effect = api_exceptions.ResourceExhausted(
        "Quota exceeded"
    )

    with pytest.raises(RateLimitedError):
        await client.generate_structured("Extract", response_schema=list)
    # No automatic retry
    assert mock_model.generate_content.call_count == 1


async def test_generate_passes_unknown_message_through(
    client: GeminiClient, mock_genai: MagicMock
) -> None:
    """Test unclassified errors keep the upstream message."""
    mock_model = mock_genai.GenerativeModel.return_value
    mock_model.generate_content.side_effect = RuntimeError("model exploded")

    with pytest.raises(UnknownServiceError) as exc_info:
        await client.generate_structured("Extract", response_schema=list)
    assert exc_info.value.message == "model exploded"


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (api_exceptions.Unauthenticated("bad token"), AuthenticationInvalidError),
        (api_exceptions.InvalidArgument("API key not valid. Please pass a valid API key."),
         AuthenticationInvalidError),
        (api_exceptions.PermissionDenied("API key expired. Please renew the API key."),
         AuthenticationInvalidError),
        (api_exceptions.PermissionDenied("Billing not enabled"), AuthorizationDeniedError),
        (api_exceptions.ResourceExhausted("quota"), RateLimitedError),
        (api_exceptions.ServiceUnavailable("overloaded"), ServiceUnavailableError),
        (api_exceptions.InternalServerError("oops"), ServiceUnavailableError),
        (api_exceptions.DeadlineExceeded("slow"), ServiceUnavailableError),
        (api_exceptions.InvalidArgument("bad image"), UnknownServiceError),
        (Exception("HTTP 429 Too Many Requests"), RateLimitedError),
        (Exception("reason: API_KEY_INVALID"), AuthenticationInvalidError),
        (Exception("status 401"), AuthenticationInvalidError),
        (Exception("status 403"), AuthorizationDeniedError),
        (Exception("500 Internal error"), ServiceUnavailableError),
        (Exception("something else"), UnknownServiceError),
    ],
)
def test_classify_error(error: Exception, expected: type) -> None:
    """Test upstream errors map onto the taxonomy."""
    classified = classify_error(error)
    assert isinstance(classified, expected)
    assert classified.details["upstream"] == error.__class__.__name__


def test_classify_error_keeps_classified_errors() -> None:
    """Test already classified errors pass through unchanged."""
    error = RateLimitedError("slow down")
    assert classify_error(error) is error
