"""Checkout."""

from fastapi import APIRouter, Depends, Request

from pos_api.auth import Caller, current_user
from pos_api.deps import order_service
from pos_api.schemas import CheckoutRequest
from pos_api.serializers import to_json
from pos_kernel.db.engine import session_scope
from pos_kernel.domain.orders import OrderLineInput
from pos_kernel.selectors.order_selector import OrderSelector

router = APIRouter(prefix="/pos", tags=["pos"])


@router.post("/checkout", status_code=201)
def checkout(body: CheckoutRequest, request: Request, caller: Caller = Depends(current_user)):
    """Record a sale for the calling cashier and return the stored order."""
    lines = [
        OrderLineInput(
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
            subtotal=item.subtotal,
        )
        for item in body.items
    ]
    with session_scope(request.app.state.session_factory) as session:
        placement = order_service(request, session).place_order(
            user_id=caller.id,
            lines=lines,
            payment_method=body.payment_method,
            total_amount=body.total_amount,
            discount=body.discount,
            tax=body.tax,
        )
        view = OrderSelector(session).get_order(placement.order_id)
    return to_json(view)
