"""Format-specific text extraction.

Each supported format maps to one :class:`Extractor`.  The mapping from
file extension to :class:`DocumentFormat` is closed: an extension that is
not listed in :data:`EXTENSION_FORMATS` is rejected during validation and
never reaches an extractor.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import time
from abc import ABC, abstractmethod
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any

import docx
import openpyxl
import xlrd
from pypdf import PdfReader

from doc_rag.exceptions import TextExtractionError

logger = logging.getLogger(__name__)

_RULE = "=" * 50


class DocumentFormat(str, Enum):
    TEXT = "text"
    PDF = "pdf"
    WORD = "word"
    EXCEL = "excel"
    CSV = "csv"
    JSON = "json"


EXTENSION_FORMATS: dict[str, DocumentFormat] = {
    ".txt": DocumentFormat.TEXT,
    ".md": DocumentFormat.TEXT,
    ".markdown": DocumentFormat.TEXT,
    ".pdf": DocumentFormat.PDF,
    ".docx": DocumentFormat.WORD,
    ".xls": DocumentFormat.EXCEL,
    ".xlsx": DocumentFormat.EXCEL,
    ".csv": DocumentFormat.CSV,
    ".json": DocumentFormat.JSON,
}


def file_extension(filename: str) -> str:
    """Lower-cased extension of *filename* including the dot (``""`` if none)."""
    return PurePath(filename).suffix.lower()


def format_for(filename: str) -> DocumentFormat | None:
    return EXTENSION_FORMATS.get(file_extension(filename))


class Extractor(ABC):
    """Turns the raw bytes of one document format into plain text."""

    @abstractmethod
    def extract_text(self, data: bytes, filename: str) -> str:
        """Return the text of *data*.

        Raises
        ------
        TextExtractionError
            When the document cannot be parsed or contains no text.
        """
        ...


class TextExtractor(Extractor):
    """Plain text and Markdown, decoded as UTF-8 with invalid bytes replaced."""

    def extract_text(self, data: bytes, filename: str) -> str:
        content = data.decode("utf-8-sig", errors="replace")
        if not content.strip():
            raise TextExtractionError(filename, "File content is empty or contains only whitespace")
        return content.strip()


class PdfExtractor(Extractor):
    def extract_text(self, data: bytes, filename: str) -> str:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            raise TextExtractionError(filename, f"Unreadable PDF: {exc}") from exc

        text = "\n\n".join(pages).strip()
        if not text:
            raise TextExtractionError(filename, "PDF contains no extractable text")
        logger.debug("Extracted %d chars from %d PDF pages of '%s'", len(text), len(pages), filename)
        return text


class WordExtractor(Extractor):
    """``.docx`` documents: paragraphs first, then tables one row per line.

    Binary Word 97 ``.doc`` files are not in :data:`EXTENSION_FORMATS` and
    are rejected during validation.
    """

    def extract_text(self, data: bytes, filename: str) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            raise TextExtractionError(filename, f"Unreadable Word document: {exc}") from exc

        lines = [p.text for p in document.paragraphs if p.text and p.text.strip()]
        for table in document.tables:
            lines.append("")
            for row in table.rows:
                cells = [cell.text for cell in row.cells if cell.text and cell.text.strip()]
                lines.append("\t".join(cells))

        text = "\n".join(lines).strip()
        if not text:
            raise TextExtractionError(filename, "Word document contains no text")
        return text


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d %H:%M:%S") if isinstance(value, datetime) else value.isoformat()
    return str(value).strip()


class ExcelExtractor(Extractor):
    """``.xlsx`` via openpyxl, legacy ``.xls`` via xlrd."""

    def extract_text(self, data: bytes, filename: str) -> str:
        try:
            if file_extension(filename) == ".xls":
                sheets = self._read_xls(data)
            else:
                sheets = self._read_xlsx(data)
        except Exception as exc:
            raise TextExtractionError(filename, f"Unreadable spreadsheet: {exc}") from exc

        blocks: list[str] = []
        total_rows = 0
        for name, rows in sheets:
            lines = [f"Sheet: {name}", _RULE, ""]
            for row in rows:
                cells = [c for c in (_cell_to_str(v) for v in row) if c]
                if cells:
                    lines.append("\t".join(cells))
                    total_rows += 1
            blocks.append("\n".join(lines))

        if total_rows == 0:
            raise TextExtractionError(filename, "Excel file contains no data")
        return "\n\n".join(blocks).strip()

    @staticmethod
    def _read_xlsx(data: bytes) -> list[tuple[str, list[tuple[Any, ...]]]]:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            return [(ws.title, list(ws.iter_rows(values_only=True))) for ws in workbook.worksheets]
        finally:
            workbook.close()

    @staticmethod
    def _read_xls(data: bytes) -> list[tuple[str, list[tuple[Any, ...]]]]:
        book = xlrd.open_workbook(file_contents=data)
        sheets = []
        for sheet in book.sheets():
            rows = []
            for r in range(sheet.nrows):
                values = []
                for cell in sheet.row(r):
                    if cell.ctype == xlrd.XL_CELL_DATE:
                        values.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
                    elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                        values.append(bool(cell.value))
                    else:
                        values.append(cell.value)
                rows.append(tuple(values))
            sheets.append((sheet.name, rows))
        return sheets


class CsvExtractor(Extractor):
    """Renders each row as ``header: value`` pairs for better retrieval context."""

    def extract_text(self, data: bytes, filename: str) -> str:
        try:
            rows = list(csv.reader(io.StringIO(data.decode("utf-8-sig"))))
        except (UnicodeDecodeError, csv.Error) as exc:
            raise TextExtractionError(filename, f"Unreadable CSV: {exc}") from exc

        if not rows:
            raise TextExtractionError(filename, "CSV file is empty")

        header = rows[0]
        lines = ["CSV Data:", _RULE, "", "Headers: " + " | ".join(header), "-" * 50]
        data_rows = 0
        for row in rows[1:]:
            pairs = [
                f"{name}: {value}"
                for name, value in zip(header, row)
                if value and value.strip()
            ]
            if not pairs:
                continue
            data_rows += 1
            lines.append(", ".join(pairs))

        # a header-only file still yields its header block
        if data_rows == 0 and not any(name.strip() for name in header):
            raise TextExtractionError(filename, "CSV file contains no data")
        logger.debug("Extracted %d CSV data rows, %d columns from '%s'", data_rows, len(header), filename)
        return "\n".join(lines).strip()


class JsonExtractor(Extractor):
    """Renders JSON as indented ``key: value`` / ``- item`` lines."""

    def extract_text(self, data: bytes, filename: str) -> str:
        try:
            payload = json.loads(data.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TextExtractionError(filename, f"Invalid JSON: {exc}") from exc
        except RecursionError as exc:
            raise TextExtractionError(filename, "JSON nesting is too deep") from exc

        try:
            text = self._render(payload, 0).strip()
        except RecursionError as exc:
            raise TextExtractionError(filename, "JSON nesting is too deep") from exc
        if not text:
            raise TextExtractionError(filename, "JSON file contains no data")
        return text

    def _render(self, value: Any, level: int) -> str:
        indent = "  " * level
        if isinstance(value, dict):
            parts = []
            for key, item in value.items():
                if isinstance(item, (dict, list)):
                    parts.append(f"{indent}{key}: \n{self._render(item, level + 1)}")
                else:
                    parts.append(f"{indent}{key}: {self._scalar(item)}\n")
            return "".join(parts)
        if isinstance(value, list):
            parts = []
            for item in value:
                if isinstance(item, (dict, list)):
                    parts.append(f"{indent}- \n{self._render(item, level + 1)}")
                else:
                    parts.append(f"{indent}- {self._scalar(item)}\n")
            return "".join(parts)
        return self._scalar(value)

    @staticmethod
    def _scalar(value: Any) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)


class ExtractorRegistry:
    """Dispatches extraction to the :class:`Extractor` registered for a format.

    Parameters
    ----------
    extractors:
        Optional overrides, e.g. a fake PDF extractor in tests.  Formats not
        given fall back to the built-in implementations.
    """

    def __init__(self, extractors: dict[DocumentFormat, Extractor] | None = None) -> None:
        self._extractors: dict[DocumentFormat, Extractor] = {
            DocumentFormat.TEXT: TextExtractor(),
            DocumentFormat.PDF: PdfExtractor(),
            DocumentFormat.WORD: WordExtractor(),
            DocumentFormat.EXCEL: ExcelExtractor(),
            DocumentFormat.CSV: CsvExtractor(),
            DocumentFormat.JSON: JsonExtractor(),
        }
        self._extractors.update(extractors or {})

    @property
    def supported_extensions(self) -> list[str]:
        return sorted(EXTENSION_FORMATS)

    def extract_text(self, data: bytes, filename: str) -> str:
        fmt = format_for(filename)
        if fmt is None:
            raise TextExtractionError(filename, f"Unsupported file type: {file_extension(filename) or '<none>'}")

        started = time.perf_counter()
        try:
            text = self._extractors[fmt].extract_text(data, filename)
        except (TextExtractionError, OSError):
            raise
        except Exception as exc:
            raise TextExtractionError(filename, f"Failed to extract text: {exc}") from exc
        logger.info(
            "%s extraction completed for '%s': %d chars in %.1fms",
            fmt.value,
            filename,
            len(text),
            (time.perf_counter() - started) * 1000,
        )
        return text
