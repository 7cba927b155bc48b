import requests
from typing import List, Optional
from ragbot.config import settings
from ragbot.errors import ConfigurationError, UpstreamError

SYSTEM_PROMPT = (
    "You are an AI assistant knowledgeable about the company. "
    "Provide accurate, helpful, and concise answers based only on the provided context. "
    "If the context doesn't contain enough information to answer the question, say so clearly."
)


class LLMService:
    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.api_key = settings.OPENROUTER_API_KEY if api_key is None else api_key
        self.model = settings.LLM_MODEL
        self.url = settings.OPENROUTER_URL
        self.timeout = settings.LLM_TIMEOUT
        self.max_tokens = settings.LLM_MAX_TOKENS
        self.temperature = settings.LLM_TEMPERATURE
        self.session = session or requests.Session()

    @property
    def headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": settings.APP_REFERER,
            "X-Title": settings.APP_TITLE,
        }

    def complete(self, context: str, question: str) -> str:
        """Ask the model ``question`` grounded on ``context``; one HTTP call, no retries."""
        if not self.api_key:
            raise ConfigurationError(detail="OPENROUTER_API_KEY not provided")

        payload = {
            "model": self.model,
            "messages": self._create_messages(context, question),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        try:
            response = self.session.post(self.url, headers=self.headers, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise UpstreamError(f"LLM request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise UpstreamError(f"LLM request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamError("LLM API error", status=response.status_code, body=response.text)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Invalid response from AI model", body=response.text) from e

        if not isinstance(content, str) or not content.strip():
            raise UpstreamError("Invalid response from AI model", body=response.text)

        return content

    def _create_messages(self, context: str, question: str) -> List[dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f"Answer the following question using this context:\n\n{context}\n\nQuestion: {question}",
            },
        ]

    def close(self):
        self.session.close()
