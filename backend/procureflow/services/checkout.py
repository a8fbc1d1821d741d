"""
Checkout Service

Turns the current cart into an immutable PurchaseRequest.

The counter increment, the request insert and the cart clear run in one database
transaction, so a failure part-way leaves neither a submitted request nor an emptied cart.
"""
import logging
import uuid
from typing import Any, Optional

from tortoise.expressions import F
from tortoise.transactions import in_transaction

from ..core.clock import to_iso, utcnow
from ..core.errors import EmptyCartError, NotFoundError, ValidationError
from ..models.cart import Cart
from ..models.item import Item
from ..models.purchase_request import (
    PurchaseRequest,
    PurchaseRequestStatus,
    RequestCounter,
    RequestSource,
)

logger = logging.getLogger("uvicorn.error")

MAX_NOTES_LENGTH = 1000


def format_request_number(year: int, seq: int) -> str:
    return f"PR-{year}-{seq:04d}"


def purchase_request_to_dict(pr: PurchaseRequest) -> dict[str, Any]:
    return {
        "id": str(pr.id),
        "requestNumber": pr.request_number,
        "requesterId": str(pr.requester_id),
        "items": [dict(line) for line in pr.items],
        "itemCount": sum(line["quantity"] for line in pr.items),
        "totalCost": pr.total_cost,
        "notes": pr.notes,
        "source": pr.source.value if isinstance(pr.source, RequestSource) else pr.source,
        "status": pr.status.value if isinstance(pr.status, PurchaseRequestStatus) else pr.status,
        "createdAt": to_iso(pr.created_at),
        "updatedAt": to_iso(pr.updated_at),
    }


async def _next_sequence(user_id: str, year: int, conn) -> int:
    """Atomically bump the requester's yearly counter and return the new value."""
    counter, _ = await RequestCounter.get_or_create(
        requester_id=user_id, year=year, defaults={"value": 0}, using_db=conn
    )
    await RequestCounter.filter(id=counter.id).using_db(conn).update(value=F("value") + 1)
    await counter.refresh_from_db(fields=["value"], using_db=conn)
    return counter.value


async def checkout_cart(
    user_id: str,
    notes: Optional[str] = None,
    source: RequestSource | str = RequestSource.UI,
) -> dict[str, Any]:
    """
    Create a purchase request from the user's cart and clear the cart.

    Raises:
        ValidationError: notes too long or unknown source
        EmptyCartError: cart has no lines (no request is created)
    """
    if notes is not None:
        notes = notes.strip() or None
    if notes and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"Validation failed: notes must be at most {MAX_NOTES_LENGTH} characters")
    try:
        source = RequestSource(source)
    except ValueError:
        raise ValidationError(f"Invalid source: {source}") from None

    async with in_transaction() as conn:
        cart = await Cart.filter(user_id=user_id).using_db(conn).first()
        if cart is None or not cart.items:
            raise EmptyCartError()

        ids = [uuid.UUID(line["itemId"]) for line in cart.items]
        catalog = {str(i.id): i for i in await Item.filter(id__in=ids).using_db(conn)}

        lines = []
        for line in cart.items:
            item = catalog.get(line["itemId"])
            lines.append({
                "itemId": line["itemId"],
                "name": line["itemName"],
                "category": item.category if item else "",
                "description": item.description if item else "",
                "unitPrice": line["unitPrice"],
                "quantity": line["quantity"],
                "subtotal": round(line["unitPrice"] * line["quantity"], 2),
            })
        total = round(sum(l["subtotal"] for l in lines), 2)

        year = utcnow().year
        seq = await _next_sequence(user_id, year, conn)
        pr = await PurchaseRequest.create(
            request_number=format_request_number(year, seq),
            requester_id=user_id,
            items=lines,
            total_cost=total,
            notes=notes,
            source=source,
            status=PurchaseRequestStatus.SUBMITTED,
            using_db=conn,
        )

        cart.items = []
        cart.total_cost = 0.0
        await cart.save(using_db=conn)

    logger.info("[checkout] created %s for user %s (total=%.2f, source=%s)",
                pr.request_number, user_id, total, source.value)
    return purchase_request_to_dict(pr)


async def list_purchase_requests(user_id: str, status: Optional[str] = None) -> list[dict[str, Any]]:
    """The user's purchase requests, newest first, optionally filtered by status."""
    qs = PurchaseRequest.filter(requester_id=user_id)
    if status:
        try:
            qs = qs.filter(status=PurchaseRequestStatus(status))
        except ValueError:
            raise ValidationError(f"Invalid status: {status}") from None
    rows = await qs.order_by("-created_at", "-request_number")
    return [purchase_request_to_dict(r) for r in rows]


async def get_purchase_request(user_id: str, request_id: str) -> dict[str, Any]:
    """Fetch one request owned by the user. Raises NotFoundError otherwise."""
    try:
        pk = uuid.UUID(str(request_id))
    except ValueError:
        raise NotFoundError("Purchase request not found") from None
    pr = await PurchaseRequest.get_or_none(id=pk, requester_id=user_id)
    if pr is None:
        raise NotFoundError("Purchase request not found")
    return purchase_request_to_dict(pr)
