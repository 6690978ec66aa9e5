"""
Tests for extraction domain models and extractor.
"""

from __future__ import annotations

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import google.generativeai as genai
import pytest
from google.generativeai import protos
from google.generativeai.types import generation_types

from rosterscan.adapters.gemini.models import GeminiResponse
from rosterscan.config.errors import RateLimitedError, UnknownServiceError
from rosterscan.domains.ingestion.models import ExtractionUnit

from .contracts import Extractor
from .extractor import (
    EXTRACTION_PROMPT,
    SYSTEM_INSTRUCTION,
    RosterExtractor,
    build_prompt,
    make_record_id,
    parse_records,
)
from .models import ROSTER_SCHEMA, ExtractedRecord

PAGE_IMAGE = base64.b64encode(b"\xff\xd8fake-jpeg").decode("ascii")


@pytest.fixture
def page_unit() -> ExtractionUnit:
    """A rendered PDF page with a text layer."""
    return ExtractionUnit(
        source_file="roster.pdf",
        page_number=2,
        image=PAGE_IMAGE,
        text_layer="王小明 綜合規劃處 處長 90",
    )


@pytest.fixture
def word_unit() -> ExtractionUnit:
    """A flattened Word document."""
    return ExtractionUnit(source_file="roster.docx", text_layer="李小華 | 秘書 | 88")


def gemini_response(payload: object) -> GeminiResponse:
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return GeminiResponse(text=text, model="gemini-3-flash-preview")


@pytest.fixture
def mock_gemini_client() -> AsyncMock:
    """Create a mock GeminiClient."""
    mock = AsyncMock()
    mock.ensure_credentials = MagicMock()
    mock.generate_structured.return_value = gemini_response(
        [
            {"unitTitle": "綜合規劃處 處長", "name": "王小明", "supervisorRating": "90"},
            {"unitTitle": "綜合規劃處 視察", "name": "李小華", "supervisorRating": "87"},
        ]
    )
    return mock


@pytest.fixture
def extractor(mock_gemini_client: AsyncMock) -> RosterExtractor:
    """Create a RosterExtractor with mocked client."""
    return RosterExtractor(mock_gemini_client)


# --- ExtractedRecord Tests ---


def test_extracted_record_defaults_to_empty_strings() -> None:
    """Test missing fields are empty strings, never None."""
    record = ExtractedRecord(id="x", source_file="a.pdf", name=None)  # type: ignore[arg-type]
    assert record.unit_title == ""
    assert record.name == ""
    assert record.supervisor_rating == ""
    assert record.page_number == 1


def test_extracted_record_coerces_numeric_rating() -> None:
    """Test numeric scores become text."""
    record = ExtractedRecord(id="x", source_file="a.pdf", supervisor_rating=90)  # type: ignore[arg-type]
    assert record.supervisor_rating == "90"


def test_roster_schema_requires_three_string_fields() -> None:
    """Test the response schema is an array of the three required keys."""
    row = ROSTER_SCHEMA.__args__[0]
    assert set(row.__required_keys__) == {"unitTitle", "name", "supervisorRating"}


def test_roster_schema_builds_generation_config() -> None:
    """Test the SDK turns the schema into an array-of-objects request schema."""
    config = genai.GenerationConfig(
        response_mime_type="application/json",
        response_schema=ROSTER_SCHEMA,
    )
    schema = generation_types.to_generation_config_dict(config)["response_schema"]

    assert schema.type_ == protos.Type.ARRAY
    assert set(schema.items.properties) == {"unitTitle", "name", "supervisorRating"}
    assert set(schema.items.required) == {"unitTitle", "name", "supervisorRating"}


# --- Prompt Tests ---


def test_build_prompt_page_puts_text_layer_first(page_unit: ExtractionUnit) -> None:
    """Test a page's text layer precedes the instruction as a hint."""
    prompt = build_prompt(page_unit)
    assert prompt.startswith("[參考用 PDF 文字層內容開始]\n王小明")
    assert prompt.endswith(EXTRACTION_PROMPT)


def test_build_prompt_word_document(word_unit: ExtractionUnit) -> None:
    """Test Word content is wrapped as document content."""
    prompt = build_prompt(word_unit)
    assert prompt.startswith("[Word 文件文字內容開始]\n李小華")
    assert prompt.endswith(EXTRACTION_PROMPT)


def test_build_prompt_image_without_text() -> None:
    """Test a scanned page sends only the instruction."""
    unit = ExtractionUnit(source_file="scan.pdf", image=PAGE_IMAGE, text_layer="")
    assert build_prompt(unit) == EXTRACTION_PROMPT


# --- Parsing Tests ---


@pytest.mark.parametrize("text", ["", "   \n", "[]", "null"])
def test_parse_records_empty_answers(text: str, page_unit: ExtractionUnit) -> None:
    """Test empty answers mean no records, not an error."""
    assert parse_records(text, page_unit) == []


def test_parse_records_missing_field_defaults(page_unit: ExtractionUnit) -> None:
    """Test an item missing supervisorRating yields an empty rating."""
    records = parse_records('[{"unitTitle": "人事室 主任", "name": "陳大文"}]', page_unit)
    assert len(records) == 1
    assert records[0].supervisor_rating == ""
    assert records[0].name == "陳大文"
    assert records[0].source_file == "roster.pdf"
    assert records[0].page_number == 2


def test_parse_records_rejects_free_text(page_unit: ExtractionUnit) -> None:
    """Test conversational text is an invalid answer."""
    with pytest.raises(UnknownServiceError) as exc_info:
        parse_records("Sure! Here are the people I found.", page_unit)
    assert exc_info.value.details == {"file": "roster.pdf", "page": 2}


def test_parse_records_rejects_object(page_unit: ExtractionUnit) -> None:
    """Test a JSON object instead of an array is invalid."""
    with pytest.raises(UnknownServiceError):
        parse_records('{"name": "王小明"}', page_unit)


def test_parse_records_skips_non_object_items(page_unit: ExtractionUnit) -> None:
    """Test stray scalars inside the array are ignored."""
    records = parse_records('["noise", {"name": "王小明"}]', page_unit)
    assert [r.name for r in records] == ["王小明"]


def test_record_ids_unique_for_identical_rows(page_unit: ExtractionUnit) -> None:
    """Test ids differ even when file, page and values are identical."""
    row = {"unitTitle": "A", "name": "B", "supervisorRating": "90"}
    first = parse_records(json.dumps([row, row]), page_unit)
    second = parse_records(json.dumps([row, row]), page_unit)
    ids = [r.id for r in first + second]
    assert len(set(ids)) == 4


def test_make_record_id_contains_identifiers() -> None:
    """Test the id embeds file, page and index."""
    record_id = make_record_id("roster.pdf", 3, 7)
    assert record_id.startswith("roster.pdf-3-7-")


# --- RosterExtractor Tests ---


def test_roster_extractor_satisfies_contract(extractor: RosterExtractor) -> None:
    """Test RosterExtractor implements the Extractor protocol."""
    assert isinstance(extractor, Extractor)


async def test_extract_page(
    extractor: RosterExtractor, mock_gemini_client: AsyncMock, page_unit: ExtractionUnit
) -> None:
    """Test a page sends image and hint text with the schema."""
    records = await extractor.extract(page_unit)

    assert [r.name for r in records] == ["王小明", "李小華"]
    assert records[0].unit_title == "綜合規劃處 處長"
    assert records[1].supervisor_rating == "87"

    kwargs = mock_gemini_client.generate_structured.call_args.kwargs
    assert kwargs["response_schema"] is ROSTER_SCHEMA
    assert kwargs["system_instruction"] == SYSTEM_INSTRUCTION
    assert kwargs["images"][0].data == b"\xff\xd8fake-jpeg"
    assert kwargs["images"][0].mime_type == "image/jpeg"
    assert "王小明 綜合規劃處 處長 90" in kwargs["prompt"]


async def test_extract_text_only(
    extractor: RosterExtractor, mock_gemini_client: AsyncMock, word_unit: ExtractionUnit
) -> None:
    """Test a Word unit sends text alone."""
    await extractor.extract(word_unit)
    kwargs = mock_gemini_client.generate_structured.call_args.kwargs
    assert kwargs["images"] == []


@pytest.mark.parametrize("text", ["", "  \n "])
async def test_extract_blank_document_sends_nothing(
    extractor: RosterExtractor, mock_gemini_client: AsyncMock, text: str
) -> None:
    """Test an empty Word document yields no records without a request."""
    unit = ExtractionUnit(source_file="empty.docx", text_layer=text)
    assert await extractor.extract(unit) == []
    mock_gemini_client.generate_structured.assert_not_awaited()


async def test_extract_propagates_classified_errors(
    extractor: RosterExtractor, mock_gemini_client: AsyncMock, page_unit: ExtractionUnit
) -> None:
    """Test service errors are surfaced, not turned into empty results."""
    mock_gemini_client.generate_structured.side_effect = RateLimitedError("429")
    with pytest.raises(RateLimitedError):
        await extractor.extract(page_unit)


def test_check_credentials_delegates(
    extractor: RosterExtractor, mock_gemini_client: AsyncMock
) -> None:
    """Test the credential check is the client's."""
    extractor.check_credentials()
    mock_gemini_client.ensure_credentials.assert_called_once_with()
