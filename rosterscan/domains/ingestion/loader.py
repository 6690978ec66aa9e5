"""
Document Loader - Turns uploaded rosters into extraction units.

PDF pages are rendered to JPEG with PyMuPDF at a scale high enough to keep
small CJK glyphs legible, and any embedded text layer is read alongside as a
hint. Word (.docx) documents are flattened to plain text with python-docx.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging

import docx
import fitz  # PyMuPDF
from docx.table import Table

from rosterscan.config.errors import DocumentUnreadableError

from .models import DocumentKind, ExtractionUnit, SourceFile

logger = logging.getLogger(__name__)

__all__ = ["DocumentLoader", "is_supported_upload"]

DEFAULT_RENDER_SCALE = 3.0
MIN_RENDER_SCALE = 2.0
DEFAULT_JPEG_QUALITY = 80

LEGACY_WORD_MESSAGE = (
    "Legacy Word (.doc) files are not supported: {name}. "
    "Open it in Word and save it as .docx or .pdf, then upload it again."
)


def is_supported_upload(name: str, content_type: str | None = None) -> bool:
    """
    Check whether an upload should be accepted.

    Legacy .doc files are accepted here so the loader can reject them with
    re-save guidance instead of silently dropping them.
    """
    kind = SourceFile(name=name, data=b"", content_type=content_type).kind
    return kind != DocumentKind.UNSUPPORTED


class DocumentLoader:
    """
    Loader for PDF and Word rosters.

    Example:
        >>> loader = DocumentLoader(render_scale=3.0)
        >>> units = await loader.load(SourceFile.from_path("roster.pdf"))
        >>> print(units[0].page_number, len(units[0].text_layer or ""))
    """

    def __init__(
        self,
        render_scale: float = DEFAULT_RENDER_SCALE,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ) -> None:
        """
        Initialize loader.

        Args:
            render_scale: Zoom factor applied when rasterizing PDF pages
            jpeg_quality: JPEG quality for rendered pages (1-100)
        """
        if render_scale < MIN_RENDER_SCALE:
            raise ValueError(
                f"render_scale must be at least {MIN_RENDER_SCALE}, got {render_scale}"
            )
        self.render_scale = render_scale
        self.jpeg_quality = jpeg_quality

    async def load(self, file: SourceFile) -> list[ExtractionUnit]:
        """
        Convert a document into extraction units.

        Args:
            file: Uploaded document

        Returns:
            Units ordered by page number ascending

        Raises:
            DocumentUnreadableError: Unsupported, legacy or corrupt document
        """
        kind = file.kind
        if kind == DocumentKind.PDF:
            return await asyncio.to_thread(self._load_pdf, file)
        if kind == DocumentKind.DOCX:
            return await asyncio.to_thread(self._load_docx, file)
        if kind == DocumentKind.DOC:
            raise DocumentUnreadableError(
                LEGACY_WORD_MESSAGE.format(name=file.name),
                {"file": file.name},
            )
        raise DocumentUnreadableError(
            f"Unsupported file type: {file.name}. Upload PDF or Word (.docx) files.",
            {"file": file.name},
        )

    # --- PDF ---

    def _load_pdf(self, file: SourceFile) -> list[ExtractionUnit]:
        try:
            document = fitz.open(stream=file.data, filetype="pdf")
        except Exception as e:
            raise DocumentUnreadableError(
                f"Cannot open PDF {file.name}: {e}", {"file": file.name}
            ) from e

        if document.needs_pass:
            document.close()
            raise DocumentUnreadableError(
                f"PDF {file.name} is password protected. "
                "Remove the password or print it to a new PDF, then upload it again.",
                {"file": file.name, "encrypted": True},
            )

        units: list[ExtractionUnit] = []
        try:
            page_count = len(document)
            logger.info("Rendering %s: %d pages", file.name, page_count)

            for index in range(page_count):
                page_number = index + 1
                page = document[index]
                text_layer = self._read_text_layer(page, file.name, page_number)

                try:
                    image = self._render_page(page)
                except Exception as e:
                    logger.warning(
                        "Skipping %s page %d: render failed: %s",
                        file.name,
                        page_number,
                        e,
                    )
                    continue

                units.append(
                    ExtractionUnit(
                        source_file=file.name,
                        page_number=page_number,
                        image=image,
                        image_mime_type="image/jpeg",
                        text_layer=text_layer,
                    )
                )
        finally:
            document.close()

        return units

    def _read_text_layer(self, page: fitz.Page, filename: str, page_number: int) -> str:
        """Best-effort text layer; scanned pages simply have none."""
        try:
            return page.get_text("text").strip()
        except Exception as e:
            logger.warning(
                "Page %d of %s: could not extract text layer: %s",
                page_number,
                filename,
                e,
            )
            return ""

    def _render_page(self, page: fitz.Page) -> str:
        """Rasterize a page to base64 JPEG."""
        matrix = fitz.Matrix(self.render_scale, self.render_scale)
        pixmap = page.get_pixmap(matrix=matrix, alpha=False)
        jpeg = pixmap.tobytes("jpeg", jpg_quality=self.jpeg_quality)
        return base64.b64encode(jpeg).decode("ascii")

    # --- Word ---

    def _load_docx(self, file: SourceFile) -> list[ExtractionUnit]:
        try:
            document = docx.Document(io.BytesIO(file.data))
            text = _docx_text(document)
        except Exception as e:
            raise DocumentUnreadableError(
                f"Cannot read Word file {file.name}: {e}", {"file": file.name}
            ) from e

        logger.info("Read %s: %d characters", file.name, len(text))
        return [ExtractionUnit(source_file=file.name, page_number=1, text_layer=text)]


def _docx_text(document) -> str:
    """Paragraphs and table rows in document order."""
    lines: list[str] = []
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            for row in block.rows:
                cells: list[str] = []
                previous = None
                for cell in row.cells:
                    # Horizontally merged cells repeat the same element
                    if cell._tc is previous:
                        continue
                    previous = cell._tc
                    cells.append(cell.text.strip())
                lines.append(" | ".join(cells))
        else:
            lines.append(block.text)
    return "\n".join(lines).strip()
