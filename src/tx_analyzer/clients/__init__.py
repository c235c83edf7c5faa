from .llm_client import (
    ChatCompletionsClient,
    LlmClient,
    LlmError,
    LlmMalformedResponse,
    LlmTimeout,
    LlmUnavailable,
)

__all__ = [
    "ChatCompletionsClient",
    "LlmClient",
    "LlmError",
    "LlmMalformedResponse",
    "LlmTimeout",
    "LlmUnavailable",
]
