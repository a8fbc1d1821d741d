"""
LLM Provider Factory

Resolution order:
1. AI_PROVIDER ("openai" | "gemini") when set
2. openai when OPENAI_API_KEY is configured
3. gemini when GOOGLE_API_KEY is configured
"""
import logging
from typing import Optional

from .llm_base import LLMProvider
from .llm_gemini import gemini_chat_service
from .llm_openai import openai_chat_service
from ..config import settings
from ..core.errors import AgentError

logger = logging.getLogger("uvicorn.error")

SUPPORTED_PROVIDERS = ("openai", "gemini")


def _providers() -> dict[str, LLMProvider]:
    return {"openai": openai_chat_service, "gemini": gemini_chat_service}


def resolve_provider_name() -> Optional[str]:
    forced = (settings.ai_provider or "").strip().lower()
    if forced:
        if forced not in SUPPORTED_PROVIDERS:
            logger.warning("[llm] unsupported AI_PROVIDER=%s, falling back to key detection", forced)
        else:
            return forced
    if openai_chat_service.is_available():
        return "openai"
    if gemini_chat_service.is_available():
        return "gemini"
    return None


def get_llm_provider() -> LLMProvider:
    """
    Get the configured LLM provider.

    Raises:
    - AgentError: no provider configured, or the selected one has no API key
    """
    name = resolve_provider_name()
    if name is None:
        logger.error("[llm] no provider configured (set OPENAI_API_KEY or GOOGLE_API_KEY)")
        raise AgentError()
    provider = _providers()[name]
    if not provider.is_available():
        logger.error("[llm] provider %s selected but its API key is missing", name)
        raise AgentError()
    return provider
