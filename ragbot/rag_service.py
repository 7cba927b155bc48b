import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ragbot.config import Settings
from ragbot.document_processor import DocumentChunk
from ragbot.errors import (
    AIRateLimitedError,
    AIUnavailableError,
    ConfigurationError,
    GenerationFailedError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from ragbot.llm_service import LLMService
from ragbot.retry import RetryPolicy, call_with_retry
from ragbot.vector_store import VectorStoreInitializer

logger = logging.getLogger(__name__)

MAX_QUESTION_LENGTH = 1000


@dataclass
class AnswerResult:
    answer: str
    model: str
    documents_found: int


def validate_question(body: Any) -> str:
    """Return the question from a request body or raise ValidationError."""
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body")

    question = body.get("question")
    if not isinstance(question, str):
        raise ValidationError("Question is required and must be a string")

    if not question.strip():
        raise ValidationError("Question cannot be empty")

    if len(question) > MAX_QUESTION_LENGTH:
        raise ValidationError(f"Question is too long (max {MAX_QUESTION_LENGTH} characters)")

    return question


def build_context(chunks: List[DocumentChunk]) -> str:
    return "\n\n".join(chunk.text for chunk in chunks)


class RAGService:
    def __init__(self, config: Settings, initializer: VectorStoreInitializer,
                 llm_service: LLMService, retry_policy: Optional[RetryPolicy] = None):
        self.config = config
        self.initializer = initializer
        self.llm_service = llm_service
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.LLM_MAX_ATTEMPTS,
            backoff_base=config.LLM_BACKOFF_BASE,
        )
        self.top_k = config.TOP_K

    def ensure_configured(self):
        for name in ("HUGGINGFACE_API_KEY", "OPENROUTER_API_KEY"):
            if not getattr(self.config, name):
                logger.error("%s is not set", name)
                raise ConfigurationError(detail=f"{name} is not set")

    def retrieve(self, question: str) -> List[DocumentChunk]:
        store = self.initializer.initialize()
        logger.info("Performing similarity search for: %s...", question[:100])
        return store.similarity_search(question, self.top_k)

    def generate(self, context: str, question: str) -> str:
        attempt = 0

        def attempt_completion() -> str:
            nonlocal attempt
            attempt += 1
            logger.info("Calling AI model (attempt %d)...", attempt)
            return self.llm_service.complete(context, question)

        try:
            return call_with_retry(attempt_completion, self.retry_policy)
        except UpstreamError as e:
            logger.error("AI API failed after %d attempts: %s %s", attempt, e, e.body or "")
            if e.status == 429:
                raise AIRateLimitedError(detail=str(e)) from e
            if e.status == 402:
                raise AIUnavailableError(detail=str(e)) from e
            raise GenerationFailedError(detail=str(e)) from e

    def answer(self, question: str) -> AnswerResult:
        """Validated question in, model answer out.

        Raises ConfigurationError, NotFoundError, the generation errors, or
        whatever initialization raised.
        """
        self.ensure_configured()

        chunks = self.retrieve(question)
        if not chunks:
            raise NotFoundError()

        answer = self.generate(build_context(chunks), question)
        return AnswerResult(answer=answer, model=self.llm_service.model, documents_found=len(chunks))
