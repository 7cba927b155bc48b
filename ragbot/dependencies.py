import logging
from typing import Optional

from fastapi import Request

from ragbot.config import Settings, settings
from ragbot.document_processor import DocumentProcessor
from ragbot.embedding_service import EmbeddingService
from ragbot.errors import RagbotError
from ragbot.health import HealthReporter
from ragbot.llm_service import LLMService
from ragbot.rag_service import RAGService
from ragbot.rate_limiter import RateLimiter
from ragbot.retry import RetryPolicy
from ragbot.vector_store import VectorStoreInitializer

logger = logging.getLogger(__name__)


class AppContext:
    """Everything the request handlers share for the life of the process.

    Created once at startup and passed to routes through ``get_context``.
    """

    def __init__(self, config: Settings = settings,
                 embedding_service: Optional[EmbeddingService] = None,
                 llm_service: Optional[LLMService] = None,
                 processor: Optional[DocumentProcessor] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 retry_policy: Optional[RetryPolicy] = None):
        self.config = config
        self.embedding_service = embedding_service or EmbeddingService(api_key=config.HUGGINGFACE_API_KEY)
        self.llm_service = llm_service or LLMService(api_key=config.OPENROUTER_API_KEY)
        self.initializer = VectorStoreInitializer(
            pdf_path=config.PDF_PATH,
            processor=processor or DocumentProcessor(config.CHUNK_SIZE, config.CHUNK_OVERLAP),
            embedding_service=self.embedding_service,
        )
        self.rate_limiter = rate_limiter or RateLimiter(config.RATE_LIMIT_WINDOW, config.RATE_LIMIT_MAX_REQUESTS)
        self.health_reporter = HealthReporter(config)
        self.rag_service = RAGService(config, self.initializer, self.llm_service, retry_policy)

    def init(self):
        if not self.config.EAGER_INIT:
            return
        try:
            self.initializer.initialize()
        except RagbotError as e:
            # Startup continues; the next /ask retries initialization.
            logger.error("Eager vector store initialization failed: %s", e.detail)

    def shutdown(self):
        self.embedding_service.close()
        self.llm_service.close()


def get_context(request: Request) -> AppContext:
    return request.app.state.context
