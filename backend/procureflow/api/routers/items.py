# procureflow/api/routers/items.py
from fastapi import APIRouter, Depends, Query, status
from procureflow.api.deps import get_current_user, get_optional_user
from procureflow.core.errors import ItemNotFoundError
from procureflow.models.user import User
from procureflow.schemas.catalog import ItemCreateIn, ItemUpdateIn
from procureflow.services import catalog as catalog_service

router = APIRouter(prefix="/items", tags=["catalog"])

@router.get("")
async def search_items(
    q: str | None = Query(None, max_length=200),
    limit: int = Query(catalog_service.MAX_SEARCH_LIMIT, ge=1, le=catalog_service.MAX_SEARCH_LIMIT),
    maxPrice: float | None = Query(None, gt=0),
    includeArchived: bool = Query(False),
):
    """
    Search the catalog.

    With q: weighted text match (name > category > description).
    Without q: most recently created active items.
    """
    items = await catalog_service.search_items(
        query=q, limit=limit, include_archived=includeArchived, max_price=maxPrice
    )
    return {"items": items, "count": len(items)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(body: ItemCreateIn, user: User | None = Depends(get_optional_user)):
    """
    Register a catalog item.

    Errors:
        - 400 VALIDATION_ERROR: aggregated field problems
        - 409 DUPLICATE_ITEM: same name+category exists (response carries `duplicates`);
          resend with allowDuplicate=true to create anyway
    """
    item = await catalog_service.create_item(
        body.to_service_input(),
        created_by_id=str(user.id) if user else None,
        allow_duplicate=body.allowDuplicate,
    )
    return {"item": item}

@router.get("/{item_id}")
async def get_item(item_id: str):
    item = await catalog_service.get_item_by_id(item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    return {"item": item}

@router.patch("/{item_id}")
async def update_item(item_id: str, body: ItemUpdateIn, user: User = Depends(get_current_user)):
    item = await catalog_service.update_item(item_id, body.to_service_input())
    return {"item": item}
