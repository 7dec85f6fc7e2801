from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from labreport.ai.exceptions import AiClientError, AiNetworkError
from labreport.ai.openai_client_adapter import OpenAIClientAdapter

_OPENAI_PATH = "labreport.ai.openai_client_adapter.openai.OpenAI"


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _complete(adapter: OpenAIClientAdapter) -> str:
    return adapter.create_chat_completion(
        model="m",
        temperature=0.1,
        system_prompt="system",
        user_prompt="user",
        max_tokens=100,
    )


class TestOpenAIClientAdapter:
    def test_returns_stripped_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(
            "  Glicose: 95 | VR: 70 - 99\n"
        )
        with patch(_OPENAI_PATH, return_value=mock_client):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
            content = _complete(adapter)
        assert content == "Glicose: 95 | VR: 70 - 99"

    def test_sends_prompts_and_token_limit(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("ok")
        with patch(_OPENAI_PATH, return_value=mock_client) as client_cls:
            adapter = OpenAIClientAdapter(
                api_key="k", timeout_seconds=30, base_url="https://api.groq.com/openai/v1"
            )
            _complete(adapter)
        client_cls.assert_called_once_with(
            api_key="k", timeout=30, base_url="https://api.groq.com/openai/v1"
        )
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]

    def test_raises_error_for_empty_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(None)
        with patch(_OPENAI_PATH, return_value=mock_client):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
            with pytest.raises(AiClientError, match="empty response"):
                _complete(adapter)

    def test_raises_error_for_no_choices(self) -> None:
        mock_client = MagicMock()
        response = MagicMock()
        response.choices = []
        mock_client.chat.completions.create.return_value = response
        with patch(_OPENAI_PATH, return_value=mock_client):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
            with pytest.raises(AiClientError, match="no choices"):
                _complete(adapter)

    def test_raises_network_error_on_connection_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=MagicMock()
        )
        with patch(_OPENAI_PATH, return_value=mock_client):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
            with pytest.raises(AiNetworkError, match="network error"):
                _complete(adapter)

    def test_raises_network_error_on_timeout(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = httpx.TimeoutException("timeout")
        with patch(_OPENAI_PATH, return_value=mock_client):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
            with pytest.raises(AiNetworkError, match="network error"):
                _complete(adapter)

    def test_raises_network_error_on_api_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            message="server error",
            request=MagicMock(),
            body=None,
        )
        with patch(_OPENAI_PATH, return_value=mock_client):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
            with pytest.raises(AiNetworkError, match="API error"):
                _complete(adapter)
