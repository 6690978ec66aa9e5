"""
Roster Extractor - Record extraction using Gemini API.

Sends one extraction unit (rendered page and/or text) per request with a
fixed prompt and a strict array-of-rows response schema, then turns the
JSON answer into ExtractedRecord objects.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import TYPE_CHECKING, Any

from rosterscan.adapters.gemini.models import InlineImage
from rosterscan.config.errors import UnknownServiceError
from rosterscan.domains.ingestion.models import ExtractionUnit

from .models import ROSTER_SCHEMA, ExtractedRecord

if TYPE_CHECKING:
    from rosterscan.adapters.gemini import GeminiClient

logger = logging.getLogger(__name__)

__all__ = ["RosterExtractor", "build_prompt", "make_record_id", "parse_records"]

SYSTEM_INSTRUCTION = """你是一個專業的資料擷取助理，專門分析公務人員考績評分清冊。
首要目標是精準擷取，特別是人名與數字，不可有任何錯字。"""

EXTRACTION_PROMPT = """請分析提供的考績評分清冊資料（影像或純文字），擷取表格中所有人員。

重要指示：
1. 資料來源若是文字，請直接解析其結構。
2. 資料來源若是影像，請優先參考附帶的文字層內容（若有），確保人名一字不差。

每一位人員請擷取以下三個欄位：
1. name（姓名）：通常位於左側第一欄。
2. unitTitle（單位/職稱）：通常位於第二欄，上一行是單位（例如：綜合規劃處），
   下一行是職稱（例如：處長、視察、秘書）。請合併為一個字串，中間以一個空格分隔，
   例如："綜合規劃處 處長"。
3. supervisorRating（單位主管擬評）：標示為「單位主管擬評」或類似的欄位，通常位於
   表格右側、考績會複核欄位之前。只擷取分數或等第本身（例如：90、87、甲）。

空白列，或包含彙總資料的列（例如「人事主管」、「備考」），請略過。
請以 JSON 陣列回傳。"""

PDF_TEXT_BLOCK = "[參考用 PDF 文字層內容開始]\n{text}\n[參考用 PDF 文字層內容結束]\n\n"
WORD_TEXT_BLOCK = "[Word 文件文字內容開始]\n{text}\n[Word 文件文字內容結束]\n\n"


def build_prompt(unit: ExtractionUnit) -> str:
    """
    Build the text part of the request.

    A page's text layer is a hint placed before the instruction; a flat-text
    document's content is the data itself.
    """
    if not unit.text_layer:
        return EXTRACTION_PROMPT
    block = PDF_TEXT_BLOCK if unit.has_image else WORD_TEXT_BLOCK
    return block.format(text=unit.text_layer) + EXTRACTION_PROMPT


def make_record_id(source_file: str, page_number: int, index: int) -> str:
    """Unique id from file, page, row index and generation time."""
    timestamp_ms = int(time.time() * 1000)
    return f"{source_file}-{page_number}-{index}-{timestamp_ms}-{uuid.uuid4().hex[:8]}"


def parse_records(text: str, unit: ExtractionUnit) -> list[ExtractedRecord]:
    """
    Parse a schema-constrained response into records.

    Args:
        text: Raw response text
        unit: Unit the response belongs to

    Returns:
        Records in response order; empty for an empty answer or empty array

    Raises:
        UnknownServiceError: Response is not a JSON array
    """
    if not text or not text.strip():
        return []

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise UnknownServiceError(
            f"Extraction service returned invalid JSON: {text[:200]}",
            {"file": unit.source_file, "page": unit.page_number},
        ) from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise UnknownServiceError(
            f"Extraction service returned {type(data).__name__}, expected a JSON array",
            {"file": unit.source_file, "page": unit.page_number},
        )

    records: list[ExtractedRecord] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning(
                "Ignoring non-object item %d on %s page %d",
                index,
                unit.source_file,
                unit.page_number,
            )
            continue
        records.append(
            ExtractedRecord(
                id=make_record_id(unit.source_file, unit.page_number, index),
                source_file=unit.source_file,
                page_number=unit.page_number,
                unit_title=item.get("unitTitle"),
                name=item.get("name"),
                supervisor_rating=item.get("supervisorRating"),
            )
        )
    return records


class RosterExtractor:
    """
    Roster extractor using Gemini API.

    Example:
        >>> from rosterscan.adapters.gemini import GeminiClient
        >>> client = GeminiClient(api_key=settings.gemini_api_key)
        >>> extractor = RosterExtractor(client)
        >>> records = await extractor.extract(unit)
    """

    def __init__(self, client: GeminiClient) -> None:
        """
        Initialize extractor.

        Args:
            client: Gemini API client
        """
        self._client = client

    def check_credentials(self) -> None:
        """Fail fast when no credential is configured."""
        self._client.ensure_credentials()

    async def extract(self, unit: ExtractionUnit) -> list[ExtractedRecord]:
        """
        Extract roster records from one unit.

        Args:
            unit: Page image and/or text

        Returns:
            Records found on the unit, possibly empty. A text-only unit with
            blank text yields no records and sends no request.

        Raises:
            ExtractionServiceError: Classified service failure
        """
        if not unit.has_image and not (unit.text_layer or "").strip():
            logger.info(
                "Skipping %s page %d: no text to extract",
                unit.source_file,
                unit.page_number,
            )
            return []

        start_time = time.time()
        images = []
        if unit.has_image:
            images.append(InlineImage(mime_type=unit.image_mime_type, data=unit.image_bytes))

        response = await self._client.generate_structured(
            prompt=build_prompt(unit),
            response_schema=ROSTER_SCHEMA,
            images=images,
            system_instruction=SYSTEM_INSTRUCTION,
        )
        records = parse_records(response.text, unit)

        logger.info(
            "Extracted %s page %d: %d records in %.1fs",
            unit.source_file,
            unit.page_number,
            len(records),
            time.time() - start_time,
        )
        return records
