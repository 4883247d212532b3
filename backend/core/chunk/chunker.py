from typing import List, Optional
from models.chunk import ParsedPage, DocumentChunk, ChunkMetadata
from config.settings import settings, ChunkingConfig

class Chunker:
    """
    Splits extracted text into overlapping, size-bounded character windows.
    - Every chunk is at most chunk_size characters.
    - Consecutive chunks share exactly chunk_overlap characters.
    - Each window is cut at the last paragraph break, else line break, else space,
      else a hard character boundary.
    - Pages are split independently; a chunk never spans two pages.
    """

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or settings.chunking

    def chunk_pages(self, pages: List[ParsedPage]) -> List[DocumentChunk]:
        """
        Main entry point for chunking a document's extracted pages.
        Document-level metadata is left blank here and filled by MetadataBuilder.
        """
        chunks = []
        absolute_chunk_index = 0

        for page in pages:
            for text in self.split_text(page.text):
                metadata = ChunkMetadata(
                    chunk_id=f"temp_{absolute_chunk_index}",
                    user_id="",
                    filename="",
                    upload_date="",
                    source="",
                    page_number=page.page_number,
                    chunk_index=absolute_chunk_index,
                    total_chunks=0
                )
                chunks.append(DocumentChunk(text=text, metadata=metadata))
                absolute_chunk_index += 1

        return chunks

    def split_text(self, text: str) -> List[str]:
        if not text or not text.strip():
            return []

        return [text[s:e] for s, e in self._get_char_ranges(text)]

    def _get_char_ranges(self, text: str) -> List[tuple[int, int]]:
        """Computes (start, end) windows; each start is the previous end minus the overlap."""
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        total = len(text)

        ranges = []
        s = 0
        while s < total:
            if total - s <= size:
                ranges.append((s, total))
                break
            e = self._find_cut(text, s, s + size)
            ranges.append((s, e))
            s = e - overlap
        return ranges

    def _find_cut(self, text: str, start: int, limit: int) -> int:
        """
        Returns the end of the window [start, limit).
        The separator must sit past start + overlap so the next window always advances.
        """
        floor = start + self.config.chunk_overlap
        for sep in self.config.separators:
            if not sep:
                break
            idx = text.rfind(sep, floor, limit)
            if idx != -1:
                return idx + len(sep)
        return limit
