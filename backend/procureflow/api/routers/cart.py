# procureflow/api/routers/cart.py
from fastapi import APIRouter, Depends, status
from procureflow.api.deps import get_current_user
from procureflow.models.user import User
from procureflow.schemas.cart import CartItemIn, CartItemUpdateIn
from procureflow.services import cart as cart_service

router = APIRouter(prefix="/cart", tags=["cart"])

@router.get("")
async def get_cart(user: User = Depends(get_current_user)):
    """Return the user's cart, creating an empty one on first access."""
    return {"cart": await cart_service.get_cart(str(user.id))}

@router.delete("")
async def clear_cart(user: User = Depends(get_current_user)):
    return {"cart": await cart_service.clear_cart(str(user.id))}

@router.post("/items", status_code=status.HTTP_201_CREATED)
async def add_cart_item(body: CartItemIn, user: User = Depends(get_current_user)):
    """
    Add an item (merging with an existing line). Quantity is clamped to 1-999.

    Errors:
        - 404 ITEM_NOT_FOUND: unknown or inactive item
        - 400 CART_LIMIT: more than 50 distinct items
    """
    cart = await cart_service.add_item(str(user.id), body.itemId, body.quantity)
    return {"cart": cart}

@router.patch("/items/{item_id}")
async def update_cart_item(item_id: str, body: CartItemUpdateIn, user: User = Depends(get_current_user)):
    return {"cart": await cart_service.update_quantity(str(user.id), item_id, body.quantity)}

@router.delete("/items/{item_id}")
async def remove_cart_item(item_id: str, user: User = Depends(get_current_user)):
    return {"cart": await cart_service.remove_item(str(user.id), item_id)}
