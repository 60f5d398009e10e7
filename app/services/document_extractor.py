"""Plain-text extraction from uploaded PDF and DOCX files."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import PurePath

import docx
from pypdf import PdfReader

from app.config import Settings
from app.exceptions import ExtractionError

logger = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF"


def _safe_name(filename: str | None) -> str:
    """Strip any directory components a client may have sent."""

    if not filename:
        return "onbekend"
    return PurePath(filename.replace("\\", "/")).name or "onbekend"


def _read_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _read_docx_text(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    parts = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            parts.extend(cell.text for cell in row.cells)
    return "\n".join(parts)


class DocumentExtractor:
    """Converts PDF or DOCX bytes into plain text.

    Nothing is written to disk; parsing happens on the in-memory buffer.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @staticmethod
    def display_name(filename: str | None) -> str:
        return _safe_name(filename)

    def extract(self, data: bytes, filename: str | None) -> str:
        name = _safe_name(filename)
        limit = self._settings.max_upload_bytes

        if len(data) > limit:
            raise ExtractionError(
                f"Bestand is te groot. Maximaal {limit // (1024 * 1024)} MB toegestaan.",
                detail=f"size {len(data)} bytes",
                filename=name,
                status_code=400,
            )
        if not data:
            raise ExtractionError("Het bestand is leeg.", filename=name, status_code=400)

        extension = PurePath(name).suffix.lower()
        if extension == ".pdf":
            text = self._extract_pdf(data, name)
        elif extension == ".docx":
            text = self._extract_docx(data, name)
        elif extension == ".doc":
            text = self._extract_legacy_doc(data, name)
        else:
            raise ExtractionError(
                "Alleen PDF- en DOCX-bestanden zijn toegestaan.",
                detail=f"extension {extension or '<none>'}",
                filename=name,
                status_code=400,
            )

        text = text.strip()
        if not text:
            raise ExtractionError(
                "Kon geen tekst uit het bestand halen.",
                filename=name,
            )

        logger.info(
            "Document text extracted",
            extra={"upload_filename": name, "bytes": len(data), "characters": len(text)},
        )
        return text

    def _extract_pdf(self, data: bytes, name: str) -> str:
        if not data.startswith(_PDF_MAGIC):
            raise ExtractionError(
                "Het bestand is geen geldig PDF-document.",
                detail="missing %PDF header",
                filename=name,
                status_code=400,
            )
        try:
            return _read_pdf_text(data)
        except Exception as exc:  # pypdf raises assorted errors on damaged input
            logger.warning("PDF extraction failed", extra={"upload_filename": name}, exc_info=exc)
            raise ExtractionError(
                "Het PDF-bestand kon niet worden gelezen.",
                detail=type(exc).__name__,
                filename=name,
            ) from exc

    def _extract_docx(self, data: bytes, name: str) -> str:
        if not zipfile.is_zipfile(io.BytesIO(data)):
            raise ExtractionError(
                "Het bestand is geen geldig DOCX-document.",
                detail="not a ZIP container",
                filename=name,
                status_code=400,
            )
        try:
            return _read_docx_text(data)
        except Exception as exc:  # python-docx and lxml raise assorted errors on damaged input
            logger.warning("DOCX extraction failed", extra={"upload_filename": name}, exc_info=exc)
            raise ExtractionError(
                "Het DOCX-bestand kon niet worden gelezen.",
                detail=type(exc).__name__,
                filename=name,
            ) from exc

    def _extract_legacy_doc(self, data: bytes, name: str) -> str:
        # Only .doc files that are really DOCX containers can be parsed.
        if self._settings.allow_legacy_doc and zipfile.is_zipfile(io.BytesIO(data)):
            return self._extract_docx(data, name)
        raise ExtractionError(
            "Oude Word-bestanden (.doc) worden niet ondersteund. "
            "Sla het bestand op als DOCX en probeer het opnieuw.",
            detail="legacy .doc",
            filename=name,
            status_code=400,
        )
