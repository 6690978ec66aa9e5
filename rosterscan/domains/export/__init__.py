"""
Export Domain - CSV and plain-text exports of extracted records.
"""

from .formatters import (
    BOM,
    CSV_HEADER,
    CSV_HEADER_ZH,
    export_filename,
    to_csv,
    to_plain_text,
)

__all__ = [
    "BOM",
    "CSV_HEADER",
    "CSV_HEADER_ZH",
    "export_filename",
    "to_csv",
    "to_plain_text",
]
