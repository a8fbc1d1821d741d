"""
Catalog Service

Search, registration and lookup of catalog items.

Search ranks candidates with a weighted text score (name > category > description);
registration runs field validation and an advisory duplicate check before inserting.
"""
import logging
import math
import re
import uuid
from typing import Any, Optional

from tortoise.exceptions import BaseORMException
from tortoise.expressions import Q

from ..core.clock import to_iso
from ..core.errors import DuplicateItemError, ItemNotFoundError, ProcureFlowError, ValidationError
from ..models.item import Item, ItemStatus

logger = logging.getLogger("uvicorn.error")

# Field bounds
NAME_MIN, NAME_MAX = 2, 200
CATEGORY_MIN, CATEGORY_MAX = 2, 100
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 2000
UNIT_MAX = 50
SUPPLIER_MAX = 200

# Search
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50
MAX_DUPLICATES = 5
MAX_SEARCH_CANDIDATES = 200  # rows fetched per query for in-process ranking
NAME_WEIGHT = 10
CATEGORY_WEIGHT = 5
DESCRIPTION_WEIGHT = 1

_TERM_RE = re.compile(r"[\w\-]+", re.UNICODE)


def item_to_dict(item: Item) -> dict[str, Any]:
    """Domain shape of an item (never leak ORM objects past the service layer)."""
    status = item.status.value if isinstance(item.status, ItemStatus) else item.status
    return {
        "id": str(item.id),
        "name": item.name,
        "category": item.category,
        "description": item.description,
        "price": item.price,
        "unit": item.unit,
        "status": status,
        "preferredSupplier": item.preferred_supplier,
        "createdByUserId": str(item.created_by_id) if item.created_by_id else None,
        "createdAt": to_iso(item.created_at),
        "updatedAt": to_iso(item.updated_at),
    }


def _check_length(errors: list[str], label: str, value: Any, lo: int, hi: int) -> Optional[str]:
    if value is None or not isinstance(value, str) or not value.strip():
        errors.append(f"{label} is required")
        return None
    value = value.strip()
    if len(value) < lo or len(value) > hi:
        errors.append(f"{label} must be between {lo} and {hi} characters")
    return value


def _check_price(errors: list[str], value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        errors.append("price must be a number")
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        errors.append("price must be a number")
        return None
    if not math.isfinite(price):
        errors.append("price must be a finite number")
        return None
    if price <= 0:
        errors.append("price must be greater than 0")
        return None
    return price


def _check_optional(errors: list[str], label: str, value: Any, hi: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{label} must be a string")
        return None
    value = value.strip()
    if len(value) > hi:
        errors.append(f"{label} must be at most {hi} characters")
    return value or None


def validate_item_input(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate item fields and return the cleaned values.

    Parameters:
        data: keys name, category, description, price, unit, preferred_supplier
        partial: only validate keys that are present (used by update)

    Raises:
        ValidationError: with every problem aggregated into one message
    """
    errors: list[str] = []
    cleaned: dict[str, Any] = {}

    bounded = (
        ("name", "name", NAME_MIN, NAME_MAX),
        ("category", "category", CATEGORY_MIN, CATEGORY_MAX),
        ("description", "description", DESCRIPTION_MIN, DESCRIPTION_MAX),
    )
    for key, label, lo, hi in bounded:
        if partial and key not in data:
            continue
        cleaned[key] = _check_length(errors, label, data.get(key), lo, hi)

    if not partial or "price" in data:
        cleaned["price"] = _check_price(errors, data.get("price"))
    if not partial or "unit" in data:
        cleaned["unit"] = _check_optional(errors, "unit", data.get("unit"), UNIT_MAX)
    if not partial or "preferred_supplier" in data:
        cleaned["preferred_supplier"] = _check_optional(
            errors, "preferredSupplier", data.get("preferred_supplier"), SUPPLIER_MAX
        )
    if partial and "status" in data:
        try:
            cleaned["status"] = ItemStatus(data["status"])
        except ValueError:
            errors.append(f"status must be one of: {', '.join(s.value for s in ItemStatus)}")

    if errors:
        raise ValidationError(f"Validation failed: {', '.join(errors)}")
    return cleaned


def _stem(term: str) -> str:
    """Very light plural folding so 'pens' finds 'Pen' and 'boxes' finds 'Box'."""
    if len(term) > 4 and term.endswith("ies"):
        return term[:-3] + "y"
    if len(term) > 4 and term.endswith(("ches", "shes", "xes", "zes", "sses")):
        return term[:-2]
    if len(term) > 3 and term.endswith("s") and not term.endswith("ss"):
        return term[:-1]
    return term


def tokenize_query(query: Optional[str]) -> list[str]:
    """Split a free-text query into unique, lowercase, stemmed search terms."""
    if not query:
        return []
    terms: list[str] = []
    for raw in _TERM_RE.findall(query.lower()):
        if len(raw) < 2:
            continue
        term = _stem(raw)
        if term not in terms:
            terms.append(term)
    return terms


def score_item(item: Item, terms: list[str]) -> int:
    """Weighted relevance: each term scores 10 in name, 5 in category, 1 in description."""
    name = (item.name or "").lower()
    category = (item.category or "").lower()
    description = (item.description or "").lower()
    score = 0
    for term in terms:
        if term in name:
            score += NAME_WEIGHT
        if term in category:
            score += CATEGORY_WEIGHT
        if term in description:
            score += DESCRIPTION_WEIGHT
    return score


async def search_items(
    query: Optional[str] = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
    include_archived: bool = False,
    max_price: Optional[float] = None,
) -> list[dict[str, Any]]:
    """
    Search the catalog.

    With a non-empty query, ranks matching items by weighted text score (newest first on ties).
    A query with no searchable terms (punctuation, single letters) matches nothing.
    At most MAX_SEARCH_CANDIDATES rows are ranked, name matches first.
    Without a query, returns the most recently created items.
    include_archived=False restricts results to active items.
    """
    limit = max(1, min(int(limit or DEFAULT_SEARCH_LIMIT), MAX_SEARCH_LIMIT))

    qs = Item.all()
    if not include_archived:
        qs = qs.filter(status=ItemStatus.ACTIVE)
    if max_price is not None:
        qs = qs.filter(price__lte=max_price)

    if not (query or "").strip():
        rows = await qs.order_by("-created_at").limit(limit)
        return [item_to_dict(r) for r in rows]

    terms = tokenize_query(query)
    if not terms:
        # Only punctuation or one-letter words: nothing to match against
        return []

    # Name hits outrank anything else, so they claim the candidate slots first
    name_hit = Q(*[Q(name__icontains=t) for t in terms], join_type=Q.OR)
    other_hit = Q(
        *[Q(category__icontains=t) | Q(description__icontains=t) for t in terms],
        join_type=Q.OR,
    )
    candidates = list(await qs.filter(name_hit).order_by("-created_at").limit(MAX_SEARCH_CANDIDATES))
    remaining = MAX_SEARCH_CANDIDATES - len(candidates)
    if remaining > 0:
        rest = qs.filter(other_hit)
        if candidates:
            rest = rest.exclude(id__in=[c.id for c in candidates])
        candidates.extend(await rest.order_by("-created_at").limit(remaining))

    ranked = sorted(
        candidates,
        key=lambda it: (score_item(it, terms), it.created_at),
        reverse=True,
    )
    return [item_to_dict(r) for r in ranked[:limit]]


async def find_duplicates(name: str, category: str) -> list[dict[str, Any]]:
    """Items whose name AND category match case-insensitively (at most 5)."""
    rows = await Item.filter(name__iexact=name.strip(), category__iexact=category.strip()).limit(MAX_DUPLICATES)
    return [item_to_dict(r) for r in rows]


async def create_item(
    data: dict[str, Any],
    created_by_id: Optional[str] = None,
    allow_duplicate: bool = False,
) -> dict[str, Any]:
    """
    Register a new catalog item.

    Raises:
        ValidationError: invalid fields (aggregated)
        DuplicateItemError: same name+category exists and allow_duplicate is False
        ProcureFlowError: unexpected storage failure
    """
    cleaned = validate_item_input(data)

    if not allow_duplicate:
        duplicates = await find_duplicates(cleaned["name"], cleaned["category"])
        if duplicates:
            raise DuplicateItemError(duplicates)

    try:
        item = await Item.create(
            name=cleaned["name"],
            category=cleaned["category"],
            description=cleaned["description"],
            price=cleaned["price"],
            unit=cleaned["unit"],
            preferred_supplier=cleaned["preferred_supplier"],
            status=ItemStatus.ACTIVE,
            created_by_id=created_by_id,
        )
    except BaseORMException as e:
        logger.exception("[catalog] failed to create item %r", cleaned["name"])
        raise ProcureFlowError("Failed to create item") from e

    logger.info("[catalog] created item %s (%s)", item.id, item.name)
    return item_to_dict(item)


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


async def get_item_by_id(item_id: str) -> Optional[dict[str, Any]]:
    """Direct lookup; returns None (not an error) when absent or malformed."""
    pk = _parse_uuid(item_id)
    if pk is None:
        return None
    item = await Item.get_or_none(id=pk)
    return item_to_dict(item) if item else None


async def get_item_model(item_id: str) -> Optional[Item]:
    pk = _parse_uuid(item_id)
    if pk is None:
        return None
    return await Item.get_or_none(id=pk)


async def update_item(item_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Partially update an item. Raises ItemNotFoundError / ValidationError."""
    item = await get_item_model(item_id)
    if item is None:
        raise ItemNotFoundError(item_id)

    cleaned = validate_item_input(data, partial=True)
    for key, value in cleaned.items():
        setattr(item, key, value)
    await item.save()
    return item_to_dict(item)
