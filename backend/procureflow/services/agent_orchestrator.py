"""
Agent Orchestrator

One conversational turn:
1. validate the message, load (owner-checked) or create the conversation
2. build the prompt (system prompt, cart context, history window, new message)
3. make a single LLM call with the tool schemas
4. run each requested tool in order through the registry and log it as an action
5. append user + agent messages, persist, record token usage

Provider failures surface as AgentError (no retry). Tool failures are reported inside the
reply text and the action log; the turn itself still succeeds.
"""
import logging
import uuid
from typing import Any, Optional

from ..core.clock import to_iso, utcnow
from ..core.errors import AgentError, NotFoundError, ProcureFlowError, ValidationError
from ..models.agent_conversation import (
    MAX_MESSAGE_LENGTH,
    MAX_MESSAGES,
    PREVIEW_LENGTH,
    TITLE_LENGTH,
    AgentConversation,
    MessageRole,
)
from . import cart as cart_service
from .agent_history import build_prompt_messages
from .agent_tools import ToolContext, ToolResult, get_tool, tool_schemas
from .llm_base import LLMResponse
from .llm_factory import get_llm_provider
from .token_counter import estimate_tokens, record_usage

logger = logging.getLogger("uvicorn.error")

MAX_CHAT_MESSAGE_LENGTH = 5000
MAX_METADATA_ITEMS = 10
ITEMS_PER_SEARCH_WHEN_MULTIPLE = 5
FALLBACK_REPLY = "I'm sorry, I couldn't work out how to help with that. Could you rephrase your request?"


def validate_message(message: Optional[str]) -> str:
    text = (message or "").strip()
    if not text:
        raise ValidationError("Message is required")
    if len(text) > MAX_CHAT_MESSAGE_LENGTH:
        raise ValidationError(f"Message must be at most {MAX_CHAT_MESSAGE_LENGTH} characters")
    return text


def make_message(sender: MessageRole, content: str, metadata: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    msg = {
        "id": uuid.uuid4().hex,
        "sender": sender.value,
        "content": content[:MAX_MESSAGE_LENGTH],
        "createdAt": to_iso(utcnow()),
    }
    if metadata:
        msg["metadata"] = metadata
    return msg


async def load_or_create_conversation(
    user_id: Optional[str],
    conversation_id: Optional[str],
    first_message: str,
) -> AgentConversation:
    if conversation_id:
        # Only signed-in owners can resume; an ownerless conversation is never reopened
        if not user_id:
            raise NotFoundError("Conversation not found")
        try:
            pk = uuid.UUID(str(conversation_id))
        except ValueError:
            raise NotFoundError("Conversation not found") from None
        conv = await AgentConversation.get_or_none(id=pk, user_id=user_id)
        if conv is None:
            raise NotFoundError("Conversation not found")
        return conv

    return AgentConversation(
        user_id=user_id,
        title=first_message[:TITLE_LENGTH].strip(),
        messages=[],
        actions=[],
    )


def collect_metadata(results: list[tuple[str, ToolResult]]) -> dict[str, Any]:
    """Merge tool outputs into message metadata: item cards (deduped), last cart, last purchase request."""
    searches = sum(1 for name, r in results if r.items is not None)
    per_result = ITEMS_PER_SEARCH_WHEN_MULTIPLE if searches > 1 else MAX_METADATA_ITEMS

    items: list[dict[str, Any]] = []
    seen: set[str] = set()
    metadata: dict[str, Any] = {}
    for _, r in results:
        for card in (r.items or [])[:per_result]:
            if card["id"] not in seen and len(items) < MAX_METADATA_ITEMS:
                seen.add(card["id"])
                items.append(card)
        if r.cart is not None:
            metadata["cart"] = r.cart
        if r.purchase_request is not None:
            metadata["purchaseRequest"] = r.purchase_request
    if items:
        metadata["items"] = items
    return metadata


def compose_reply(response: LLMResponse, results: list[tuple[str, ToolResult]]) -> str:
    parts = []
    if response.content:
        parts.append(response.content)
    parts.extend(r.text for _, r in results)
    return "\n\n".join(parts) if parts else FALLBACK_REPLY


async def run_tool_calls(
    response: LLMResponse,
    ctx: ToolContext,
    actions: list[dict[str, Any]],
) -> list[tuple[str, ToolResult]]:
    """Dispatch tool calls sequentially; cart writes must stay ordered per user."""
    results: list[tuple[str, ToolResult]] = []
    for call in response.tool_calls:
        action: dict[str, Any] = {"tool": call.name, "args": call.arguments, "timestamp": to_iso(utcnow())}
        tool = get_tool(call.name)
        if tool is None:
            logger.warning("[agent] model requested unknown tool %r", call.name)
            action["error"] = f"Unknown tool: {call.name}"
            actions.append(action)
            continue
        try:
            result = await tool.run(call.arguments, ctx)
        except ProcureFlowError as e:
            logger.info("[agent] tool %s failed: %s", call.name, e.message)
            action["error"] = e.message
            result = ToolResult(text=f"Error: {e.message}")
        else:
            action["result"] = result.summary()
        actions.append(action)
        results.append((call.name, result))
    return results


async def handle_agent_message(
    user_id: Optional[str],
    message: str,
    conversation_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Process one user message.

    Returns:
        {"conversationId": str, "messages": [...]} with the full updated transcript

    Raises:
        ValidationError: empty or oversized message
        NotFoundError: conversationId unknown or owned by someone else
        AgentError: LLM provider unavailable or failed
    """
    text = validate_message(message)
    conv = await load_or_create_conversation(user_id, conversation_id, text)

    cart = await cart_service.get_cart(user_id) if user_id else None
    prompt = build_prompt_messages(conv.messages, text, cart)
    tools = tool_schemas()

    provider = get_llm_provider()
    try:
        response = await provider.chat(prompt, tools)
    except Exception as e:
        logger.exception("[agent] %s call failed", provider.name)
        raise AgentError() from e

    ctx = ToolContext(user_id=user_id, conversation_id=str(conv.id))

    actions = list(conv.actions)
    results = await run_tool_calls(response, ctx, actions)

    reply = compose_reply(response, results)
    messages = list(conv.messages)
    messages.append(make_message(MessageRole.USER, text))
    messages.append(make_message(MessageRole.AGENT, reply, collect_metadata(results)))
    messages = messages[-MAX_MESSAGES:]

    conv.messages = messages
    conv.actions = actions
    conv.message_count = len(messages)
    conv.last_message_preview = reply[:PREVIEW_LENGTH]
    await conv.save()

    if response.usage is not None:
        prompt_tokens, completion_tokens = response.usage.prompt_tokens, response.usage.completion_tokens
    else:
        prompt_tokens = sum(estimate_tokens(m["content"]) for m in prompt)
        completion_tokens = estimate_tokens(response.content)
    await record_usage(
        user_id=user_id,
        conversation_id=str(conv.id),
        provider=response.provider or provider.name,
        model=response.model or provider.model,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        tool_calls=len(response.tool_calls),
    )

    logger.info("[agent] conversation=%s user=%s tools=%s",
                conv.id, user_id, [c.name for c in response.tool_calls])
    return {"conversationId": str(conv.id), "messages": messages}
