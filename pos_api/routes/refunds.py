"""Refund creation and lookup."""

from fastapi import APIRouter, Depends, Request

from pos_api.auth import Caller, current_user
from pos_api.deps import refund_service
from pos_api.schemas import RefundRequest
from pos_api.serializers import to_json
from pos_kernel.db.engine import session_scope
from pos_kernel.domain.refunds import RefundLineRequest
from pos_kernel.selectors.refund_selector import RefundSelector

router = APIRouter(prefix="/refunds", tags=["refunds"])


@router.post("", status_code=201)
def create_refund(body: RefundRequest, request: Request, caller: Caller = Depends(current_user)):
    lines = [
        RefundLineRequest(order_item_id=item.order_item_id, quantity=item.quantity)
        for item in body.items
    ]
    with session_scope(request.app.state.session_factory) as session:
        result = refund_service(request, session).create_refund(
            order_id=body.order_id,
            user_id=caller.id,
            lines=lines,
            reason=body.reason,
        )
        view = RefundSelector(session).get_refund(result.refund_id)
    return to_json(view)


@router.get("")
def list_refunds(request: Request, caller: Caller = Depends(current_user)):
    with session_scope(request.app.state.session_factory) as session:
        views = RefundSelector(session).list_refunds()
    return to_json(views)


@router.get("/order/{order_id}")
def refunds_for_order(order_id: int, request: Request, caller: Caller = Depends(current_user)):
    with session_scope(request.app.state.session_factory) as session:
        views = RefundSelector(session).refunds_for_order(order_id)
    return to_json(views)


@router.get("/{refund_id}")
def get_refund(refund_id: int, request: Request, caller: Caller = Depends(current_user)):
    with session_scope(request.app.state.session_factory) as session:
        view = RefundSelector(session).get_refund(refund_id)
    return to_json(view)
