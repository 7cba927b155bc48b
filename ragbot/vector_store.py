import logging
import threading
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ragbot.config import settings
from ragbot.document_processor import DocumentChunk, DocumentProcessor
from ragbot.embedding_service import EmbeddingService
from ragbot.errors import DataError

logger = logging.getLogger(__name__)


class VectorStore:
    """Read-only in-memory store of chunks and their embeddings.

    Built once from a static corpus. Search is a full linear cosine scan,
    which is fine for a single document.
    """

    def __init__(self, chunks: Sequence[DocumentChunk], embeddings: Sequence[Sequence[float]],
                 embedding_service: EmbeddingService):
        if len(chunks) != len(embeddings):
            raise DataError(detail=f"Got {len(embeddings)} embeddings for {len(chunks)} chunks")

        dimensions = {len(vector) for vector in embeddings}
        if len(dimensions) > 1:
            raise DataError(detail=f"Embeddings have mixed dimensionality: {sorted(dimensions)}")

        self.chunks: Tuple[DocumentChunk, ...] = tuple(chunks)
        self.embeddings = np.asarray(embeddings, dtype=np.float32)
        self.embeddings.setflags(write=False)
        self.dimension = dimensions.pop() if dimensions else 0
        self.embedding_service = embedding_service

    def __len__(self) -> int:
        return len(self.chunks)

    def search_with_scores(self, query: str, k: int) -> List[Tuple[DocumentChunk, float]]:
        if not isinstance(k, int) or k < 1:
            raise ValueError(f"k must be a positive integer, got {k!r}")
        if not self.chunks:
            return []

        query_embedding = self.embedding_service.get_embedding(query)
        similar = self.embedding_service.find_similar_chunks(query_embedding, self.embeddings, top_k=k)
        return [(self.chunks[idx], score) for idx, score in similar]

    def similarity_search(self, query: str, k: int) -> List[DocumentChunk]:
        """Return the ``k`` chunks nearest to ``query``, most similar first."""
        return [chunk for chunk, _ in self.search_with_scores(query, k)]


class VectorStoreInitializer:
    """Builds the vector store on first use and hands out the same instance after that.

    Concurrent first callers block on a lock so the PDF is parsed and embedded
    once. A failed build is not remembered; the next caller tries again.
    """

    def __init__(self, pdf_path: Optional[str] = None,
                 processor: Optional[DocumentProcessor] = None,
                 embedding_service: Optional[EmbeddingService] = None):
        self.pdf_path = pdf_path or settings.PDF_PATH
        self.processor = processor or DocumentProcessor()
        self.embedding_service = embedding_service or EmbeddingService()
        self._store: Optional[VectorStore] = None
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._store is not None

    def initialize(self) -> VectorStore:
        if self._store is not None:
            return self._store

        with self._lock:
            if self._store is None:
                self._store = self._build()
            return self._store

    def _build(self) -> VectorStore:
        logger.info("Initializing vector store from %s", self.pdf_path)
        chunks = self.processor.process_document(self.pdf_path)
        embeddings = self.embedding_service.get_embeddings_batch([chunk.text for chunk in chunks])
        store = VectorStore(chunks, embeddings, self.embedding_service)
        logger.info("Vector store initialized with %d documents (dimension %d)", len(store), store.dimension)
        return store

    def close(self):
        self.embedding_service.close()
