from unittest.mock import MagicMock, patch

import pytest

from labreport.ai.client_base import BaseAiClient
from labreport.ai.completion import TextCompletion
from labreport.ai.factory import AiClientFactory
from labreport.config.settings import Settings

_OPENAI_PATH = "labreport.ai.openai_client_adapter.openai.OpenAI"


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[arg-type]


class TestAiClientFactory:
    def test_example_provider_is_offline(self) -> None:
        completion = AiClientFactory.create(_settings(ai_provider="example"))
        assert completion.complete("system", "user", 10) == "NOT_FOUND"

    def test_openai_uses_default_base_url(self) -> None:
        with patch(_OPENAI_PATH) as client_cls:
            completion = AiClientFactory.create(
                _settings(ai_provider="openai", ai_api_key="k", ai_timeout_seconds=12)
            )
        assert isinstance(completion, TextCompletion)
        client_cls.assert_called_once_with(api_key="k", timeout=12, base_url=None)

    def test_known_compatible_provider(self) -> None:
        with patch(_OPENAI_PATH) as client_cls:
            AiClientFactory.create(_settings(ai_provider="OpenRouter"))
        assert client_cls.call_args.kwargs["base_url"] == "https://openrouter.ai/api/v1"

    def test_openai_compatible_requires_url(self) -> None:
        with pytest.raises(ValueError, match="ai_base_url is required"):
            AiClientFactory.create(_settings(ai_provider="openai_compatible"))

    def test_openai_compatible_uses_configured_url(self) -> None:
        with patch(_OPENAI_PATH) as client_cls:
            AiClientFactory.create(
                _settings(ai_provider="openai_compatible", ai_base_url=" http://llm:8000/v1 ")
            )
        assert client_cls.call_args.kwargs["base_url"] == "http://llm:8000/v1"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown AI provider"):
            AiClientFactory.create(_settings(ai_provider="mystery"))


class TestTextCompletion:
    def test_passes_model_and_default_temperature(self) -> None:
        client = MagicMock(spec=BaseAiClient)
        client.create_chat_completion.return_value = "  answer \n"
        completion = TextCompletion(client=client, model="gpt", temperature=0.3)

        assert completion.complete("sys", "usr", 50) == "answer"
        client.create_chat_completion.assert_called_once_with(
            model="gpt",
            temperature=0.3,
            system_prompt="sys",
            user_prompt="usr",
            max_tokens=50,
        )

    def test_temperature_override(self) -> None:
        client = MagicMock(spec=BaseAiClient)
        client.create_chat_completion.return_value = "x"
        TextCompletion(client=client, model="gpt").complete("s", "u", 5, temperature=0.0)
        assert client.create_chat_completion.call_args.kwargs["temperature"] == 0.0

    def test_temperature_is_clamped(self) -> None:
        client = MagicMock(spec=BaseAiClient)
        client.create_chat_completion.return_value = "x"
        TextCompletion(client=client, model="gpt", temperature=3.0).complete("s", "u", 5)
        assert client.create_chat_completion.call_args.kwargs["temperature"] == 1.0
