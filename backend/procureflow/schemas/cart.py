# procureflow/schemas/cart.py
from pydantic import BaseModel

class CartItemIn(BaseModel):
    itemId: str
    quantity: int = 1  # Clamped to 1-999 by the cart service

class CartItemUpdateIn(BaseModel):
    quantity: int

class CheckoutIn(BaseModel):
    notes: str | None = None  # Optional justification (max 1000 characters)
