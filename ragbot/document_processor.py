import os
import logging
from dataclasses import dataclass
from typing import List

from langchain_text_splitters import RecursiveCharacterTextSplitter
from pypdf import PdfReader

from ragbot.config import settings
from ragbot.errors import ConfigurationError, DataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentChunk:
    text: str
    source_offset: int


class DocumentProcessor:
    def __init__(self, chunk_size: int = None, chunk_overlap: int = None):
        self.chunk_size = chunk_size or settings.CHUNK_SIZE
        self.chunk_overlap = settings.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            add_start_index=True,
        )

    def extract_text_from_pdf(self, file_path: str) -> str:
        """Extract text from every page of a PDF, pages separated by blank lines."""
        if not os.path.exists(file_path):
            raise ConfigurationError(detail=f"Source PDF not found: {file_path}")

        try:
            reader = PdfReader(file_path)
            pages = [(page.extract_text() or "") for page in reader.pages]
        except Exception as e:
            raise DataError(detail=f"Error extracting text from PDF {file_path}: {e}") from e

        return "\n\n".join(pages)

    def chunk_text(self, text: str) -> List[DocumentChunk]:
        """Split text into overlapping chunks, keeping each chunk's start offset."""
        if not text or not text.strip():
            return []

        documents = self.splitter.create_documents([text])
        return [
            DocumentChunk(text=doc.page_content, source_offset=doc.metadata.get("start_index", -1))
            for doc in documents
        ]

    def process_document(self, file_path: str) -> List[DocumentChunk]:
        """Load the PDF and return its chunks.

        Raises ConfigurationError if the file is missing and DataError if it
        yields no text or no chunks.
        """
        text = self.extract_text_from_pdf(file_path)
        if not text.strip():
            raise DataError(detail=f"No text content found in PDF {file_path}")

        chunks = self.chunk_text(text)
        if not chunks:
            raise DataError(detail=f"No chunks created from PDF {file_path}")

        logger.info("Split %s into %d chunks (%d characters)", file_path, len(chunks), len(text))
        return chunks
