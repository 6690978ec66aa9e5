"""
Export Formatters - Delimited text exports of extracted records.

Both formatters are pure: the same records always give the same text.
"""

from __future__ import annotations

import csv
import io
import time
from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from rosterscan.domains.extraction.models import ExtractedRecord

__all__ = [
    "BOM",
    "CSV_HEADER",
    "CSV_HEADER_ZH",
    "export_filename",
    "to_csv",
    "to_plain_text",
]

# Lets spreadsheet tools detect UTF-8 for CJK text
BOM = "﻿"

CSV_HEADER = ("unit/title", "name", "rating", "source file")
CSV_HEADER_ZH = ("單位/職稱", "姓名", "單位主管擬評", "來源檔案")

ExportKind = Literal["csv", "txt"]


def to_csv(
    records: Sequence[ExtractedRecord],
    header: Sequence[str] = CSV_HEADER,
) -> str:
    """
    Format records as CSV.

    Args:
        records: Records in display order
        header: Column titles

    Returns:
        BOM-prefixed CSV text; every data field is quoted
    """
    buffer = io.StringIO()
    buffer.write(BOM)
    buffer.write(",".join(header) + "\n")

    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        writer.writerow(
            [
                record.unit_title,
                record.name,
                record.supervisor_rating,
                record.source_file,
            ]
        )
    return buffer.getvalue()


def to_plain_text(records: Sequence[ExtractedRecord]) -> str:
    """
    Format records as one human-readable line each.

    Example line:
        綜合規劃處 處長 | 王小明 | 90 | roster.pdf (p. 1)
    """
    lines = [
        " | ".join(
            [
                _single_line(record.unit_title),
                _single_line(record.name),
                _single_line(record.supervisor_rating),
                f"{_single_line(record.source_file)} (p. {record.page_number})",
            ]
        )
        for record in records
    ]
    return "".join(line + "\n" for line in lines)


def export_filename(kind: ExportKind, now: datetime | None = None) -> str:
    """Download name with a millisecond timestamp."""
    timestamp = now.timestamp() if now else time.time()
    return f"roster_results_{int(timestamp * 1000)}.{kind}"


def _single_line(value: str) -> str:
    return " ".join(value.split())
