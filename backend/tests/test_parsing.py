import pytest

from core.parse.pdf_parser import PDFParser
from core.errors import EmptyDocumentError

def test_pdf_parser_extracts_pages(sample_pdf):
    pages = PDFParser().parse(sample_pdf)

    print(f"Total pages extracted: {len(pages)}")
    assert [p.page_number for p in pages] == [1, 2]
    assert "Retrieval Augmented Generation" in pages[0].text
    assert "hallucinations" in pages[1].text

def test_blank_pages_are_dropped(blank_pdf):
    assert PDFParser().parse(blank_pdf) == []

def test_zero_byte_file_is_content_error(tmp_path):
    empty = tmp_path / "empty.pdf"
    empty.write_bytes(b"")

    with pytest.raises(EmptyDocumentError, match="No content extracted from PDF"):
        PDFParser().parse(str(empty))

def test_unreadable_file_is_content_error(tmp_path):
    garbage = tmp_path / "garbage.pdf"
    garbage.write_bytes(b"this is not a pdf at all")

    with pytest.raises(EmptyDocumentError):
        PDFParser().parse(str(garbage))
