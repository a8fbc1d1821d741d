"""
Google Gemini Adapter

Calls the REST generateContent endpoint with functionDeclarations.
System messages become the systemInstruction; agent turns use Gemini's "model" role.
"""
from typing import Any

import httpx

from .llm_base import LLMProvider, LLMResponse, LLMUsage, ToolCall, to_provider_role
from ..config import settings


class GeminiChatService(LLMProvider):
    """Gemini generateContent with function calling"""

    def __init__(self):
        self.api_key = settings.google_api_key
        self.api_base = settings.gemini_api_base
        self.model_name = settings.gemini_model
        self.timeout = settings.llm_timeout_seconds

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self.model_name

    def is_available(self) -> bool:
        return bool(self.api_key)

    def build_payload(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> dict[str, Any]:
        system_parts = []
        contents = []
        for m in messages:
            role = to_provider_role(m["role"])
            if role == "system":
                system_parts.append({"text": m["content"]})
                continue
            contents.append({
                "role": "model" if role == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            })

        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": 0.2},
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        if tools:
            payload["tools"] = [{"functionDeclarations": [_declaration(t) for t in tools]}]
        return payload

    async def chat(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> LLMResponse:
        if not self.is_available():
            raise RuntimeError("Gemini: API key not configured")

        url = f"{self.api_base}/models/{self.model_name}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        payload = self.build_payload(messages, tools)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            result = resp.json()

        candidates = result.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []

        texts = []
        tool_calls = []
        for part in parts:
            if "functionCall" in part:
                fc = part["functionCall"]
                tool_calls.append(ToolCall(name=fc.get("name", ""), arguments=fc.get("args") or {}))
            elif part.get("text"):
                texts.append(part["text"])

        usage = None
        meta = result.get("usageMetadata")
        if meta:
            prompt = meta.get("promptTokenCount", 0)
            completion = meta.get("candidatesTokenCount", 0)
            usage = LLMUsage(
                prompt_tokens=prompt,
                completion_tokens=completion,
                total_tokens=meta.get("totalTokenCount", prompt + completion),
            )

        return LLMResponse(
            content="".join(texts).strip(),
            tool_calls=tool_calls,
            usage=usage,
            model=result.get("modelVersion", self.model_name),
            provider=self.name,
        )


def _declaration(tool: dict[str, Any]) -> dict[str, Any]:
    """Gemini rejects OBJECT schemas without properties, so parameterless tools omit them."""
    decl = {"name": tool["name"], "description": tool["description"]}
    if (tool.get("parameters") or {}).get("properties"):
        decl["parameters"] = tool["parameters"]
    return decl


# Global singleton
gemini_chat_service = GeminiChatService()
