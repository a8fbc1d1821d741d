"""
Prompt construction for agent turns.

The prompt is: system prompt, optional cart context, a window of recent messages, then the
new user message. The window keeps at most N recent messages, stops once the history token
budget is spent, and is trimmed further (oldest first) if the whole prompt is over budget.
"""
from typing import Any, Optional

from ..config import settings
from ..models.agent_conversation import MessageRole
from .token_counter import estimate_tokens

SYSTEM_PROMPT = """You are a helpful procurement assistant for ProcureFlow.

You can call these tools:
- search_catalog: find catalog items by keyword (optionally under a maximum price)
- register_item: add a new item to the catalog when nothing suitable exists
- add_to_cart: add an item to the cart by its ID
- update_cart_item: change the quantity of an item already in the cart (0 removes it)
- remove_from_cart: remove an item from the cart
- view_cart: show the cart contents and total
- analyze_cart: summarize cart statistics
- checkout: submit the cart as a purchase request

Guidelines:
- Use search_catalog when the user asks to find or buy something.
- Item IDs come from search results or the cart; never invent them.
- Only call checkout when the user clearly asks to check out or confirms it.
- Keep answers short and practical."""


def build_cart_context(cart: Optional[dict[str, Any]]) -> Optional[str]:
    """One-paragraph summary of the cart for the model, or None if the cart is empty."""
    if not cart or not cart.get("items"):
        return None
    lines = [
        f"- {l['itemName']} (ID: {l['itemId']}) x {l['quantity']} @ ${l['unitPrice']:.2f}"
        for l in cart["items"]
    ]
    return (
        f"Current cart ({len(cart['items'])} item types, total ${cart['totalCost']:.2f}):\n"
        + "\n".join(lines)
    )


def select_history(
    history: list[dict[str, Any]],
    max_messages: int,
    max_tokens: int,
) -> list[dict[str, Any]]:
    """Most recent user/agent messages, newest kept first, within both limits. Returned oldest first."""
    window: list[dict[str, Any]] = []
    used = 0
    for msg in reversed(history):
        if len(window) >= max_messages:
            break
        if msg.get("sender") not in (MessageRole.USER.value, MessageRole.AGENT.value):
            continue
        cost = estimate_tokens(msg.get("content"))
        if used + cost > max_tokens:
            break
        window.append(msg)
        used += cost
    window.reverse()
    return window


def build_prompt_messages(
    history: list[dict[str, Any]],
    user_message: str,
    cart: Optional[dict[str, Any]] = None,
    max_messages: Optional[int] = None,
    max_history_tokens: Optional[int] = None,
    max_total_tokens: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Build provider-neutral prompt messages: [{"role": MessageRole, "content": str}, ...]
    """
    max_messages = settings.agent_max_history_messages if max_messages is None else max_messages
    max_history_tokens = settings.agent_max_history_tokens if max_history_tokens is None else max_history_tokens
    max_total_tokens = settings.agent_max_total_tokens if max_total_tokens is None else max_total_tokens

    head = [{"role": MessageRole.SYSTEM, "content": SYSTEM_PROMPT}]
    cart_context = build_cart_context(cart)
    if cart_context:
        head.append({"role": MessageRole.SYSTEM, "content": cart_context})
    tail = {"role": MessageRole.USER, "content": user_message}

    window = select_history(history, max_messages, max_history_tokens)
    fixed = sum(estimate_tokens(m["content"]) for m in head) + estimate_tokens(user_message)
    while window and fixed + sum(estimate_tokens(m.get("content")) for m in window) > max_total_tokens:
        window.pop(0)

    body = [{"role": MessageRole(m["sender"]), "content": m["content"]} for m in window]
    return head + body + [tail]
