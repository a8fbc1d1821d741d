"""
OpenAI Chat Completions Adapter

Calls /v1/chat/completions with function tools and normalizes the reply.
"""
import json
import logging
from typing import Any

import httpx

from .llm_base import LLMProvider, LLMResponse, LLMUsage, ToolCall, to_provider_role
from ..config import settings

logger = logging.getLogger("uvicorn.error")


class OpenAIChatService(LLMProvider):
    """OpenAI chat completions with tool calling"""

    def __init__(self):
        self.api_key = settings.openai_api_key
        self.api_url = settings.openai_api_url
        self.model_name = settings.openai_model
        self.timeout = settings.llm_timeout_seconds

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self.model_name

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    def build_payload(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model_name,
            "messages": [
                {"role": to_provider_role(m["role"]), "content": m["content"]}
                for m in messages
            ],
            "temperature": 0.2,  # Low temperature: tool selection should be predictable
        }
        if tools:
            payload["tools"] = [{"type": "function", "function": t} for t in tools]
            payload["tool_choice"] = "auto"
        return payload

    async def chat(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> LLMResponse:
        if not self.is_available():
            raise RuntimeError("OpenAI: API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(messages, tools)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.api_url, headers=headers, json=payload)
            resp.raise_for_status()
            result = resp.json()

        message = result["choices"][0]["message"]
        tool_calls = []
        for call in message.get("tool_calls") or []:
            fn = call.get("function") or {}
            tool_calls.append(ToolCall(
                id=call.get("id"),
                name=fn.get("name", ""),
                arguments=_parse_arguments(fn.get("arguments")),
            ))

        usage = None
        raw_usage = result.get("usage")
        if raw_usage:
            usage = LLMUsage(
                prompt_tokens=raw_usage.get("prompt_tokens", 0),
                completion_tokens=raw_usage.get("completion_tokens", 0),
                total_tokens=raw_usage.get("total_tokens", 0),
            )

        return LLMResponse(
            content=(message.get("content") or "").strip(),
            tool_calls=tool_calls,
            usage=usage,
            model=result.get("model", self.model_name),
            provider=self.name,
        )


def _parse_arguments(raw: Any) -> dict[str, Any]:
    """Tool arguments arrive as a JSON string; tolerate malformed output."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[llm] malformed tool arguments from OpenAI: %r", raw[:200])
        return {}
    return parsed if isinstance(parsed, dict) else {}


# Global singleton
openai_chat_service = OpenAIChatService()
