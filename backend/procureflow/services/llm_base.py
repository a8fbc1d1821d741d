"""
LLM Provider Abstract Interface

Provides a unified chat + tool-calling interface over different LLM vendors
(OpenAI chat completions / Google Gemini).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..models.agent_conversation import MessageRole


@dataclass
class ToolCall:
    """A function call requested by the model"""
    name: str
    arguments: dict[str, Any]
    id: Optional[str] = None


@dataclass
class LLMUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResponse:
    """Normalized provider reply"""
    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: Optional[LLMUsage] = None  # None when the provider did not report usage
    model: str = ""
    provider: str = ""


# The only place where the canonical sender is translated for LLM APIs.
_PROVIDER_ROLES = {
    MessageRole.USER: "user",
    MessageRole.AGENT: "assistant",
    MessageRole.SYSTEM: "system",
}


def to_provider_role(role: MessageRole | str) -> str:
    return _PROVIDER_ROLES[MessageRole(role)]


class LLMProvider(ABC):
    """LLM Provider Abstract Base Class"""

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> LLMResponse:
        """
        Send one chat request with tool definitions.

        Parameters:
        - messages: [{"role": MessageRole, "content": str}, ...] in prompt order
        - tools: [{"name", "description", "parameters" (JSON schema)}, ...]

        Returns:
        - LLMResponse: text content, requested tool calls and usage
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider key stored with usage records (e.g., "openai")"""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        pass
