# procureflow/api/routers/checkout.py
from fastapi import APIRouter, Body, Depends, Query, status
from procureflow.api.deps import get_current_user
from procureflow.models.purchase_request import RequestSource
from procureflow.models.user import User
from procureflow.schemas.cart import CheckoutIn
from procureflow.services import checkout as checkout_service

router = APIRouter(tags=["checkout"])

@router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def checkout(body: CheckoutIn | None = Body(None), user: User = Depends(get_current_user)):
    """
    Submit the cart as a purchase request and empty the cart.

    Errors:
        - 400 EMPTY_CART: nothing to check out (no request is created)
    """
    pr = await checkout_service.checkout_cart(
        str(user.id), notes=body.notes if body else None, source=RequestSource.UI
    )
    return {"purchaseRequest": pr}

@router.get("/purchase-requests")
async def list_purchase_requests(
    status_filter: str | None = Query(None, alias="status"),
    user: User = Depends(get_current_user),
):
    rows = await checkout_service.list_purchase_requests(str(user.id), status=status_filter)
    return {"purchaseRequests": rows, "count": len(rows)}

@router.get("/purchase-requests/{request_id}")
async def get_purchase_request(request_id: str, user: User = Depends(get_current_user)):
    return {"purchaseRequest": await checkout_service.get_purchase_request(str(user.id), request_id)}
