"""
Ingestion Domain - Document to extraction-unit conversion.

This domain handles:
- PDF page rendering and text-layer recovery
- Word (.docx) text flattening
- Upload type filtering
"""

from .contracts import Loader
from .loader import DocumentLoader, is_supported_upload
from .models import DocumentKind, ExtractionUnit, SourceFile

__all__ = [
    # Contracts
    "Loader",
    # Models
    "DocumentKind",
    "ExtractionUnit",
    "SourceFile",
    # Implementations
    "DocumentLoader",
    "is_supported_upload",
]
