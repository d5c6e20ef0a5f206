"""
Text Extractor — best-effort plain text from uploaded resume bytes.

Responsibilities:
  • Detect the container format from the file name / MIME type
  • PDF: scan literal string operands and uncompressed streams (no decompression)
  • DOCX: paragraphs and table cells via python-docx, one line per paragraph
  • DOC / unknown binary: keep readable character runs
  • Plain text: decode and pass through

`extract_text` never raises; it returns whatever it recovered, possibly "".
Deciding whether that is enough text is the orchestrator's job.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from enum import Enum
from pathlib import PurePosixPath

import docx
from docx.opc.exceptions import PackageNotFoundError

from resume_intake.errors import UnsupportedFormat

logger = logging.getLogger(__name__)


class DocumentFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"
    TEXT = "text"


_EXTENSIONS = {
    "pdf": DocumentFormat.PDF,
    "docx": DocumentFormat.DOCX,
    "doc": DocumentFormat.DOC,
    "txt": DocumentFormat.TEXT,
    "text": DocumentFormat.TEXT,
}

_MIME_TYPES = {
    "application/pdf": DocumentFormat.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentFormat.DOCX,
    "application/msword": DocumentFormat.DOC,
    "text/plain": DocumentFormat.TEXT,
}

SUPPORTED_EXTENSIONS = tuple(_EXTENSIONS)


# ── Format Detection ─────────────────────────────────────────────────────────


def detect_format(file_name: str | None, mime_type: str | None = None) -> DocumentFormat:
    """Resolve the container format from the extension, then the MIME type."""
    if file_name:
        ext = PurePosixPath(file_name).suffix.lower().lstrip(".")
        if ext in _EXTENSIONS:
            return _EXTENSIONS[ext]

    if mime_type:
        base_type = mime_type.split(";", 1)[0].strip().lower()
        if base_type in _MIME_TYPES:
            return _MIME_TYPES[base_type]

    raise UnsupportedFormat(
        f"Unsupported file type for '{file_name}' ({mime_type or 'unknown MIME type'}). "
        "Please upload PDF, DOC, DOCX or TXT."
    )


# ── Public API ───────────────────────────────────────────────────────────────


def extract_text(data: bytes, format_hint: DocumentFormat | str | None) -> str:
    """Extract best-effort text from raw bytes. Never raises."""
    fmt = _coerce_format(format_hint)

    try:
        if fmt is DocumentFormat.PDF:
            text = _extract_pdf_text(data)
            if not text:
                logger.warning(
                    "PDF yielded no literal text; content streams are probably compressed "
                    f"({len(data)} bytes)"
                )
        elif fmt is DocumentFormat.DOCX:
            text = _extract_docx_text(data)
        elif fmt is DocumentFormat.TEXT:
            text = _decode_plain_text(data)
        else:
            text = _extract_binary_text(data)
    except Exception as e:
        logger.warning(f"Text extraction failed for format={fmt}: {e}", exc_info=True)
        return ""

    logger.info(f"Extracted {len(text)} chars from {len(data)} bytes (format={fmt.value if fmt else 'binary'})")
    return text


def _coerce_format(format_hint: DocumentFormat | str | None) -> DocumentFormat | None:
    if isinstance(format_hint, DocumentFormat) or format_hint is None:
        return format_hint
    hint = format_hint.lower().lstrip(".")
    if hint in _EXTENSIONS:
        return _EXTENSIONS[hint]
    try:
        return DocumentFormat(hint)
    except ValueError:
        return None


# ── PDF ──────────────────────────────────────────────────────────────────────

# Literal string operand: ( ... ) with backslash escapes, no unescaped nesting
_PDF_LITERAL_RE = re.compile(r"\(((?:\\.|[^\\()])*)\)", re.DOTALL)
_PDF_STREAM_RE = re.compile(r"(?<!end)stream\r?\n(.*?)endstream", re.DOTALL)
_PDF_ESCAPE_RE = re.compile(r"\\([0-7]{1,3}|\r\n|[\r\n]|.)", re.DOTALL)
_PDF_PRINTABLE_RUN_RE = re.compile(r"[A-Za-z][A-Za-z0-9 .,;:@'&+#/\-]{5,}")
_HAS_ALPHA_RE = re.compile(r"[A-Za-z]")

_PDF_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "(": "(",
    ")": ")",
    "\\": "\\",
}


def _extract_pdf_text(data: bytes) -> str:
    """
    Heuristic PDF text recovery. Not a content-stream interpreter: filtered
    (compressed) streams are skipped, so such documents yield little or nothing.
    """
    raw = data.decode("latin-1")

    visible_parts: list[str] = []
    plain_streams: list[str] = []
    last_end = 0
    for match in _PDF_STREAM_RE.finditer(raw):
        visible_parts.append(raw[last_end:match.start()])
        if _stream_is_filtered(raw, match.start()):
            visible_parts.append(" ")
        else:
            visible_parts.append(match.group(1))
            plain_streams.append(match.group(1))
        last_end = match.end()
    visible_parts.append(raw[last_end:])
    visible = "".join(visible_parts)

    runs: list[str] = []
    for match in _PDF_LITERAL_RE.finditer(visible):
        text = _unescape_pdf_literal(match.group(1)).strip()
        if text and _HAS_ALPHA_RE.search(text):
            runs.append(text)

    # Uncompressed streams without literal operands may still carry readable runs
    for body in plain_streams:
        if _PDF_LITERAL_RE.search(body):
            continue
        runs.extend(run.strip() for run in _PDF_PRINTABLE_RUN_RE.findall(body))

    return " ".join(run for run in runs if run)


def _stream_is_filtered(raw: str, stream_start: int) -> bool:
    """Look back at the stream's dictionary for a /Filter entry."""
    head = raw[max(0, stream_start - 1024):stream_start]
    # Start from this object's "N 0 obj" header so nested dictionaries are covered
    obj_start = head.rfind("obj")
    return "/Filter" in head[max(obj_start, 0):]


def _unescape_pdf_literal(value: str) -> str:
    def _replace(match: re.Match) -> str:
        seq = match.group(1)
        if seq[0] in "01234567":
            return chr(int(seq, 8) & 0xFF)
        if seq in ("\r\n", "\r", "\n"):
            return ""  # line continuation
        return _PDF_ESCAPES.get(seq, seq)

    return _PDF_ESCAPE_RE.sub(_replace, value)


# ── DOCX ─────────────────────────────────────────────────────────────────────

def _extract_docx_text(data: bytes) -> str:
    """Paragraph text plus table cells via python-docx, one line per paragraph."""
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning(f"Not a readable DOCX container ({e}); scanning raw bytes instead")
        return _extract_binary_text(data)

    text_parts: list[str] = []
    for para in document.paragraphs:
        stripped = para.text.strip()
        if stripped:
            text_parts.append(stripped)

    # Resumes laid out with tables keep most of their text in cells
    for table in document.tables:
        for row in table.rows:
            cells: list[str] = []
            for cell in row.cells:
                cell_text = cell.text.strip()
                # Merged cells come back once per grid column
                if cell_text and cell_text not in cells:
                    cells.append(cell_text)
            if cells:
                text_parts.append(" | ".join(cells))

    return "\n".join(text_parts)


# ── DOC / Unknown Binary ─────────────────────────────────────────────────────

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_READABLE_RUN_RE = re.compile(r"[A-Za-z0-9@#+\-_/.,:;()&%' ]{4,}")


def _extract_binary_text(data: bytes) -> str:
    """Crude recovery for legacy .doc and unrecognized binaries: readable runs only."""
    # Word 97-2003 stores most text as UTF-16LE; dropping NULs recovers the ASCII subset
    raw = data.replace(b"\x00", b"").decode("latin-1")
    raw = _CONTROL_CHARS_RE.sub(" ", raw)

    runs = [run.strip() for run in _READABLE_RUN_RE.findall(raw)]
    return " ".join(run for run in runs if _HAS_ALPHA_RE.search(run))


# ── Plain Text ───────────────────────────────────────────────────────────────


def _decode_plain_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")
