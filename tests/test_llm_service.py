import pytest
import requests
from unittest.mock import Mock, patch

from ragbot.config import settings
from ragbot.errors import ConfigurationError, UpstreamError
from ragbot.llm_service import SYSTEM_PROMPT, LLMService


def make_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class TestLLMService:

    def setup_method(self):
        self.service = LLMService(api_key="test_openrouter_key")

    def test_complete_success(self):
        """Test a well-formed chat completion."""
        payload = {"choices": [{"message": {"role": "assistant", "content": "The answer."}}]}

        with patch.object(self.service.session, "post", return_value=make_response(payload=payload)) as mock_post:
            answer = self.service.complete("Some context", "A question?")

        assert answer == "The answer."
        mock_post.assert_called_once()

        url = mock_post.call_args.args[0]
        kwargs = mock_post.call_args.kwargs
        assert url == settings.OPENROUTER_URL
        assert kwargs["timeout"] == settings.LLM_TIMEOUT
        assert kwargs["headers"]["Authorization"] == "Bearer test_openrouter_key"
        assert kwargs["headers"]["X-Title"] == settings.APP_TITLE

        body = kwargs["json"]
        assert body["model"] == settings.LLM_MODEL
        assert body["max_tokens"] == settings.LLM_MAX_TOKENS
        assert body["temperature"] == settings.LLM_TEMPERATURE
        assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert body["messages"][1]["content"] == (
            "Answer the following question using this context:\n\nSome context\n\nQuestion: A question?"
        )

    @pytest.mark.parametrize("status", [400, 402, 429, 500, 503])
    def test_complete_http_error(self, status):
        response = make_response(status_code=status, text='{"error": "details"}')

        with patch.object(self.service.session, "post", return_value=response):
            with pytest.raises(UpstreamError) as exc_info:
                self.service.complete("ctx", "q")

        assert exc_info.value.status == status
        assert exc_info.value.body == '{"error": "details"}'

    def test_complete_timeout(self):
        with patch.object(self.service.session, "post", side_effect=requests.Timeout("slow")):
            with pytest.raises(UpstreamError) as exc_info:
                self.service.complete("ctx", "q")

        assert exc_info.value.status is None
        assert "timed out" in str(exc_info.value)

    def test_complete_connection_error(self):
        with patch.object(self.service.session, "post", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(UpstreamError):
                self.service.complete("ctx", "q")

    @pytest.mark.parametrize("payload", [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": [{"message": {"content": None}}]},
        ValueError("not json"),
    ])
    def test_complete_malformed_response(self, payload):
        with patch.object(self.service.session, "post", return_value=make_response(payload=payload)):
            with pytest.raises(UpstreamError) as exc_info:
                self.service.complete("ctx", "q")

        assert "Invalid response" in str(exc_info.value)

    def test_complete_no_api_key(self):
        service = LLMService(api_key="")
        with pytest.raises(ConfigurationError):
            service.complete("ctx", "q")
