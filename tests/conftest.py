import os
import pytest
from fastapi.testclient import TestClient

from ragbot.config import Settings
from ragbot.dependencies import AppContext, get_context
from ragbot.document_processor import DocumentProcessor
from ragbot.embedding_service import EmbeddingService
from ragbot.errors import UpstreamError
from ragbot.llm_service import LLMService
from ragbot.main import app
from ragbot.rate_limiter import RateLimiter
from ragbot.retry import RetryPolicy

KEYWORDS = ["pricing", "founded", "headquarters", "employees"]

SAMPLE_TEXT = (
    "Skyline Robotics was founded in 2012 by two engineers.\n\n"
    "The headquarters of Skyline Robotics is in Denver, Colorado.\n\n"
    "Skyline Robotics has about 400 employees across three offices.\n\n"
    "Pricing for the Skyline window cleaning robot starts at 20000 dollars."
)


class FakeEmbeddingService(EmbeddingService):
    """Keyword-count vectors instead of calls to Hugging Face."""

    def __init__(self):
        super().__init__(api_key="test_hf_key")
        self.calls = []

    def _post(self, texts):
        self.calls.append(list(texts))
        return [[float(text.lower().count(word)) for word in KEYWORDS] + [0.1] for text in texts]


class ScriptedLLMService(LLMService):
    """Plays back a list of answers and exceptions, one per call."""

    def __init__(self, script=None):
        super().__init__(api_key="test_openrouter_key")
        self.script = list(script or ["Skyline Robotics was founded in 2012."])
        self.calls = []

    def complete(self, context, question):
        self.calls.append((context, question))
        outcome = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TextProcessor(DocumentProcessor):
    """Skips PDF parsing but keeps the missing-file check and the real chunker."""

    def __init__(self, text=SAMPLE_TEXT, chunk_size=80, chunk_overlap=10):
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.text = text
        self.extract_calls = 0

    def extract_text_from_pdf(self, file_path):
        if not os.path.exists(file_path):
            return super().extract_text_from_pdf(file_path)
        self.extract_calls += 1
        return self.text


def upstream_error(status):
    return UpstreamError("LLM API error", status=status, body='{"error": "upstream detail"}')


@pytest.fixture
def pdf_path(tmp_path):
    """Placeholder PDF file; TextProcessor never parses it."""
    path = tmp_path / "company_profile.pdf"
    path.write_bytes(b"%PDF-1.4\n%%EOF\n")
    return str(path)


@pytest.fixture
def test_settings(pdf_path):
    config = Settings()
    config.HUGGINGFACE_API_KEY = "test_hf_key"
    config.OPENROUTER_API_KEY = "test_openrouter_key"
    config.PDF_PATH = pdf_path
    config.EAGER_INIT = False
    return config


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def llm_service():
    return ScriptedLLMService()


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def processor():
    return TextProcessor()


@pytest.fixture
def context(test_settings, embedding_service, llm_service, processor, sleeps):
    return AppContext(
        config=test_settings,
        embedding_service=embedding_service,
        llm_service=llm_service,
        processor=processor,
        rate_limiter=RateLimiter(window_seconds=60, max_requests=10),
        retry_policy=RetryPolicy(max_attempts=3, backoff_base=1.0, sleep=sleeps.append),
    )


@pytest.fixture
def client(context):
    """Create test client wired to the test context."""
    app.dependency_overrides[get_context] = lambda: context
    yield TestClient(app)
    app.dependency_overrides.clear()
