"""Offline AI client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseAiClient and register the provider in AiClientFactory.
"""

from labreport.ai.client_base import BaseAiClient


class ExampleClientAdapter(BaseAiClient):
    """Adapter that answers every prompt with a fixed response.

    No network calls. The default answer is the "not found" sentinel, so name
    lookups fall through and result extraction yields no lines.
    """

    DEFAULT_RESPONSE = "NOT_FOUND"

    def __init__(self, response: str = DEFAULT_RESPONSE) -> None:
        self._response = response

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, max_tokens
        return self._response
