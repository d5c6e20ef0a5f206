import io
import zipfile

import docx
import pytest

from resume_intake.errors import UnsupportedFormat
from resume_intake.services.text_extractor import DocumentFormat, detect_format, extract_text

PLAIN_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj\n<< /Length 44 >>\nstream\n"
    b"BT /F1 12 Tf 72 712 Td (Jane Doe) Tj ET\n"
    b"endstream\nendobj\n"
    b"trailer\n%%EOF"
)

COMPRESSED_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj\n<< /Length 12 /Filter /FlateDecode >>\nstream\n"
    b"x\x9c\xcb(Secret)\x01\n"
    b"endstream\nendobj\n"
    b"%%EOF"
)


def _docx(*paragraphs: str, table: list[list[str]] | None = None) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for i, row in enumerate(table):
            for j, value in enumerate(row):
                grid.cell(i, j).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# ── Format Detection ─────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "file_name, mime_type, expected",
    [
        ("resume.PDF", None, DocumentFormat.PDF),
        ("resume.docx", None, DocumentFormat.DOCX),
        ("user-1/1700000000000.doc", None, DocumentFormat.DOC),
        ("notes.txt", None, DocumentFormat.TEXT),
        ("upload", "application/msword", DocumentFormat.DOC),
        ("upload.bin", "text/plain; charset=utf-8", DocumentFormat.TEXT),
    ],
)
def test_detect_format(file_name, mime_type, expected):
    assert detect_format(file_name, mime_type) is expected


def test_detect_format_rejects_unknown_types():
    with pytest.raises(UnsupportedFormat):
        detect_format("photo.png", "image/png")


# ── PDF ──────────────────────────────────────────────────────────────────────


def test_pdf_literal_strings_are_extracted():
    assert extract_text(PLAIN_PDF, DocumentFormat.PDF) == "Jane Doe"


def test_pdf_literal_escapes_are_decoded():
    pdf = b"%PDF-1.4\n1 0 obj\n<< >>\nstream\n(O\\(Brien\\) \\101da) Tj\nendstream\nendobj\n"
    assert extract_text(pdf, "pdf") == "O(Brien) Ada"


def test_compressed_pdf_streams_yield_nothing():
    assert extract_text(COMPRESSED_PDF, DocumentFormat.PDF) == ""


def test_plain_stream_is_read_next_to_a_compressed_one():
    pdf = COMPRESSED_PDF.replace(
        b"%%EOF",
        b"2 0 obj\n<< /Length 30 >>\nstream\nBT (Python Developer) Tj ET\nendstream\nendobj\n%%EOF",
    )
    text = extract_text(pdf, DocumentFormat.PDF)
    assert text == "Python Developer"
    assert "Secret" not in text


# ── DOCX ─────────────────────────────────────────────────────────────────────


def test_docx_paragraphs_become_lines():
    assert extract_text(_docx("Hello", "World & Co"), DocumentFormat.DOCX) == "Hello\nWorld & Co"


def test_docx_empty_runs_do_not_leak_markup():
    document = docx.Document()
    para = document.add_paragraph()
    para.add_run("")
    para.add_run("Jane").bold = True
    buffer = io.BytesIO()
    document.save(buffer)

    assert extract_text(buffer.getvalue(), DocumentFormat.DOCX) == "Jane"


def test_docx_table_cells_are_read():
    data = _docx("Jane Doe", table=[["Skills", "Python, SQL"], ["Education", "BSc"]])
    assert extract_text(data, DocumentFormat.DOCX) == "Jane Doe\nSkills | Python, SQL\nEducation | BSc"


def test_docx_without_document_xml_falls_back_to_byte_scan():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
        archive.writestr("other.xml", "Jane Doe Engineer")
    assert "Jane Doe Engineer" in extract_text(buffer.getvalue(), DocumentFormat.DOCX)


def test_docx_that_is_not_a_zip_is_scanned_as_binary():
    assert extract_text(b"not a zip archive", DocumentFormat.DOCX) == "not a zip archive"


# ── DOC / Plain Text ─────────────────────────────────────────────────────────


def test_doc_utf16_text_is_recovered():
    data = b"\xd0\xcf\x11\xe0\x01\x02" + "Jane Doe Engineer".encode("utf-16-le") + b"\x00\x00\x07"
    assert extract_text(data, DocumentFormat.DOC) == "Jane Doe Engineer"


def test_plain_text_passes_through():
    assert extract_text("Jane Doe\nEngineer".encode(), DocumentFormat.TEXT) == "Jane Doe\nEngineer"


def test_plain_text_strips_bom_and_tolerates_latin1():
    assert extract_text(b"\xef\xbb\xbfJane", "txt") == "Jane"
    assert extract_text(b"Ren\xe9", "txt") == "René"


def test_unknown_hint_uses_byte_scan():
    assert extract_text(b"\x00\x01Jane Doe\x02\x03", "weird") == "Jane Doe"


@pytest.mark.parametrize("fmt", list(DocumentFormat) + [None])
@pytest.mark.parametrize("data", [b"", b"\x00\xff\xfe", b"%PDF-1.4 (unterminated", b"PK\x03\x04broken"])
def test_extract_text_never_raises(fmt, data):
    assert isinstance(extract_text(data, fmt), str)
