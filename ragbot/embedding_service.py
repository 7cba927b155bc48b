import logging
import requests
from typing import List, Optional, Sequence, Tuple
import numpy as np
from sklearn.metrics.pairwise import cosine_similarity
from ragbot.config import settings
from ragbot.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class EmbeddingService:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        self.api_key = settings.HUGGINGFACE_API_KEY if api_key is None else api_key
        self.embedding_model = model or settings.EMBEDDING_MODEL
        self.embedding_url = f"{settings.HF_INFERENCE_URL}/{self.embedding_model}/pipeline/feature-extraction"
        self.batch_size = settings.EMBEDDING_BATCH_SIZE
        self.timeout = settings.EMBEDDING_TIMEOUT
        self.session = session or requests.Session()

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _post(self, texts: List[str]) -> List[List[float]]:
        if not self.api_key:
            raise ConfigurationError(detail="HUGGINGFACE_API_KEY not provided")

        try:
            response = self.session.post(
                self.embedding_url,
                headers=self.headers,
                json={"inputs": texts},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(f"Embedding request failed: {e}") from e

        if response.status_code != 200:
            logger.warning("Embedding API error: %s - %s", response.status_code, response.text[:500])
            raise UpstreamError("Embedding API error", status=response.status_code, body=response.text)

        try:
            result = response.json()
        except ValueError as e:
            raise UpstreamError("Embedding API returned invalid JSON", status=response.status_code,
                                body=response.text) from e

        return self._parse_embeddings(result, len(texts))

    @staticmethod
    def _parse_embeddings(result, expected: int) -> List[List[float]]:
        # Handle different response formats
        if isinstance(result, list) and len(result) == expected:
            vectors = []
            for item in result:
                if isinstance(item, dict) and "embedding" in item:
                    item = item["embedding"]
                if not isinstance(item, list) or not item or not isinstance(item[0], (int, float)):
                    raise UpstreamError("Unexpected embedding format", body=result)
                vectors.append([float(v) for v in item])
            return vectors
        raise UpstreamError("Unexpected embedding response shape", body=result)

    def get_embedding(self, text: str) -> List[float]:
        """Get embedding for a single text using the Hugging Face API."""
        return self._post([text])[0]

    def get_embeddings_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Get embeddings for multiple texts, ``batch_size`` texts per request."""
        embeddings = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start:start + self.batch_size])
            embeddings.extend(self._post(batch))
        return embeddings

    def find_similar_chunks(self, query_embedding: Sequence[float],
                            chunk_embeddings: np.ndarray,
                            top_k: int = 4) -> List[Tuple[int, float]]:
        """Find most similar chunks using cosine similarity.

        Ties keep corpus order.
        """
        if len(query_embedding) == 0 or len(chunk_embeddings) == 0:
            return []

        query_vec = np.asarray(query_embedding, dtype=np.float32).reshape(1, -1)
        chunk_vecs = np.asarray(chunk_embeddings, dtype=np.float32)

        similarities = cosine_similarity(query_vec, chunk_vecs)[0]
        top_indices = np.argsort(-similarities, kind="stable")[:top_k]

        return [(int(idx), float(similarities[idx])) for idx in top_indices]

    def close(self):
        self.session.close()
