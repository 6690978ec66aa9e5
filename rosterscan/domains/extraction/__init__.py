"""
Extraction Domain - Extraction unit to roster records.

This domain handles:
- Prompt and response-schema construction
- Gemini request per unit
- Response parsing and record id assignment
"""

from .contracts import Extractor
from .extractor import RosterExtractor, build_prompt, make_record_id, parse_records
from .models import ROSTER_SCHEMA, ExtractedRecord, RosterRow

__all__ = [
    # Contracts
    "Extractor",
    # Models
    "ExtractedRecord",
    "RosterRow",
    "ROSTER_SCHEMA",
    # Implementations
    "RosterExtractor",
    "build_prompt",
    "make_record_id",
    "parse_records",
]
