"""
Ingestion Models - Data types for ingestion domain.
"""

from __future__ import annotations

import base64
import mimetypes
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"


class DocumentKind(str, Enum):
    """Input formats recognised by the loader."""

    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"  # legacy binary Word, rejected with guidance
    UNSUPPORTED = "unsupported"


class SourceFile(BaseModel):
    """Uploaded input document."""

    name: str
    data: bytes = Field(repr=False)
    content_type: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceFile":
        """Read a file from disk."""
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, data=path.read_bytes(), content_type=content_type)

    @property
    def kind(self) -> DocumentKind:
        """Detect the format from the extension, then the content type."""
        suffix = Path(self.name).suffix.lower()
        if suffix == ".pdf":
            return DocumentKind.PDF
        if suffix == ".docx":
            return DocumentKind.DOCX
        if suffix == ".doc":
            return DocumentKind.DOC

        content_type = (self.content_type or "").split(";")[0].strip().lower()
        return {
            PDF_MIME: DocumentKind.PDF,
            DOCX_MIME: DocumentKind.DOCX,
            DOC_MIME: DocumentKind.DOC,
        }.get(content_type, DocumentKind.UNSUPPORTED)


class ExtractionUnit(BaseModel):
    """One page, or one whole flat-text document, to send for extraction."""

    source_file: str
    page_number: int = Field(default=1, ge=1)
    image: str | None = Field(default=None, repr=False)  # base64 encoded
    image_mime_type: str = "image/jpeg"
    text_layer: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def require_content(self) -> "ExtractionUnit":
        """At least one of image or text layer must be present."""
        if self.image is None and self.text_layer is None:
            raise ValueError("ExtractionUnit needs an image or a text layer")
        return self

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def image_bytes(self) -> bytes:
        """Decoded image payload."""
        if self.image is None:
            return b""
        return base64.b64decode(self.image)
