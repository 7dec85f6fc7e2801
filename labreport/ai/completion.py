from labreport.ai.client_base import BaseAiClient
from labreport.logging.logger import Log


class TextCompletion:
    """Binds a provider client to a model and default temperature."""

    def __init__(
        self,
        *,
        client: BaseAiClient,
        model: str,
        temperature: float = 0.1,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float | None = None,
    ) -> str:
        """Run one chat completion and return the stripped text.

        Raises:
            AiClientError: on provider or network failures.
        """
        Log.debug(f"AI prompt ({len(user_prompt)} chars, max_tokens={max_tokens})")
        return self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature if temperature is None else temperature,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_tokens=max_tokens,
        ).strip()
