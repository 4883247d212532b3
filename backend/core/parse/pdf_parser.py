import os
import fitz  # PyMuPDF
from typing import List
from models.chunk import ParsedPage
from core.errors import EmptyDocumentError

class PDFParser:
    """
    Page-level PDF text extraction with PyMuPDF.
    Blank pages are dropped; an unreadable or zero-byte file is a content error,
    not an upstream failure.
    """

    def parse(self, file_path: str) -> List[ParsedPage]:
        """
        Main entry point for parsing a PDF.
        Returns one ParsedPage per page that has extractable text, in page order.
        """
        if os.path.getsize(file_path) == 0:
            raise EmptyDocumentError("No content extracted from PDF: file is empty")

        try:
            doc = fitz.open(file_path, filetype="pdf")
        except Exception as e:
            raise EmptyDocumentError(f"No content extracted from PDF: {e}") from e

        pages = []
        try:
            for page_num, page in enumerate(doc):
                text = page.get_text("text").strip()
                if text:
                    pages.append(ParsedPage(text=text, page_number=page_num + 1))
        finally:
            doc.close()

        return pages
