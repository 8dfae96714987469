"""Tests for document loading and text readers."""

import docx
import pytest

from invoice_reconciler.input_handler import (
    DocumentLoader,
    PDFTextReader,
    PlainTextReader,
    RawDocument,
    WordTextReader,
    guess_mime_type,
)
from invoice_reconciler.utils.exceptions import (
    CorruptedDocumentError,
    EmptyDocumentError,
    InputError,
    UnsupportedFileTypeError,
)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def loader():
    return DocumentLoader()


@pytest.mark.parametrize("filename, expected", [
    ("scan.JPG", "image/jpeg"),
    ("scan.tif", "image/tiff"),
    ("invoice.pdf", "application/pdf"),
    ("invoice.docx", DOCX_MIME),
    ("notes.txt", "text/plain"),
    ("legacy.doc", "application/msword"),
])
def test_guess_mime_type(filename, expected):
    assert guess_mime_type(filename) == expected


def test_empty_upload_rejected(loader):
    with pytest.raises(EmptyDocumentError):
        loader.from_bytes(b"", "image/png")


def test_unsupported_type_rejected(loader):
    with pytest.raises(UnsupportedFileTypeError):
        loader.from_bytes(b"data", "application/msword", filename="legacy.doc")


def test_oversized_upload_rejected(loader):
    loader.max_file_size = 10
    with pytest.raises(InputError):
        loader.from_bytes(b"x" * 11, "text/plain")


def test_valid_upload(loader, png_bytes):
    document = loader.from_bytes(png_bytes, "image/png", is_handwritten=True, filename="a.png")
    assert document.is_image
    assert document.is_handwritten
    assert document.display_name == "a.png"


def test_load_from_disk(loader, tmp_path, sample_text):
    path = tmp_path / "invoice.txt"
    path.write_text(sample_text, encoding="utf-8")

    document = loader.load(path)
    assert document.is_text
    assert document.filename == "invoice.txt"


def test_load_missing_file(loader, tmp_path):
    with pytest.raises(InputError):
        loader.load(tmp_path / "missing.png")


def test_batch_skips_unsupported_and_empty(loader, tmp_path, png_bytes):
    (tmp_path / "b.png").write_bytes(png_bytes)
    (tmp_path / "a.txt").write_text("Total: $10.00", encoding="utf-8")
    (tmp_path / "empty.txt").write_bytes(b"")
    (tmp_path / "clip.mp4").write_bytes(b"\x00\x01")

    assert [p.name for p in loader.collect(tmp_path)] == ["a.txt", "b.png", "empty.txt"]
    assert [d.filename for d in loader.load_batch(tmp_path)] == ["a.txt", "b.png"]


def test_collect_requires_directory(loader, tmp_path):
    with pytest.raises(InputError):
        loader.collect(tmp_path / "nowhere")


def test_plain_text_reader_replaces_bad_bytes():
    document = RawDocument(b"Total: \xff$10.00", "text/plain")
    assert PlainTextReader().read(document) == "Total: \ufffd$10.00"


def test_word_reader_reads_paragraphs_and_tables(tmp_path):
    path = tmp_path / "invoice.docx"
    word_document = docx.Document()
    word_document.add_paragraph("Staff: Emily Chen")
    word_document.add_paragraph("")
    table = word_document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Total"
    table.rows[0].cells[1].text = "$75.50"
    word_document.save(str(path))

    text = WordTextReader().read(RawDocument.from_path(path))
    assert text == "Staff: Emily Chen\nTotal  $75.50"


def test_word_reader_rejects_garbage():
    with pytest.raises(CorruptedDocumentError):
        WordTextReader().read(RawDocument(b"not a zip", DOCX_MIME))


def test_pdf_reader_rejects_garbage():
    with pytest.raises(CorruptedDocumentError):
        PDFTextReader().read(RawDocument(b"not a pdf", "application/pdf"))
