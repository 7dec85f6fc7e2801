from labreport.ai.completion import TextCompletion
from labreport.ai.factory import AiClientFactory

__all__ = ["AiClientFactory", "TextCompletion"]
