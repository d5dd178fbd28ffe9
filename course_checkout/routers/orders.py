"""Order API endpoints for students and admins."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from course_checkout import tasks
from course_checkout.core.auth import CurrentUser, get_current_user, require_admin
from course_checkout.core.database import get_db
from course_checkout.models.order import Order, OrderStatus, PaymentMethod
from course_checkout.repositories.order_repository import OrderRepository
from course_checkout.routers.errors import raise_for_transition
from course_checkout.schemas.order import (
    OrderResponse,
    OrderTransitionResponse,
    RejectPaymentRequest,
    TransferSentRequest,
)
from course_checkout.services.order_state_machine import TransitionResult
from course_checkout.services.reconciliation_service import ReconciliationService

router = APIRouter()


def _transition_response(
    result: TransitionResult, background_tasks: BackgroundTasks
) -> OrderTransitionResponse:
    if not result.ok:
        raise_for_transition(result)
    if not result.already_processed:
        background_tasks.add_task(tasks.request_notification_dispatch)
    return OrderTransitionResponse(
        order=OrderResponse.model_validate(result.order),
        already_processed=result.already_processed,
    )


def _get_visible_order(order: Order | None, user: CurrentUser) -> Order:
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    if not user.is_admin and order.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view this order")
    return order


@router.get(
    "/",
    response_model=list[OrderResponse],
    summary="List orders",
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Forbidden"}},
)
async def list_orders(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    status: OrderStatus | None = None,
    payment_method: PaymentMethod | None = None,
    course_id: UUID | None = None,
    user_id: UUID | None = None,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[Order]:
    """List orders, newest first."""
    repo = OrderRepository(db)
    response.headers["X-Total-Count"] = str(
        repo.count(status=status, payment_method=payment_method, course_id=course_id, user_id=user_id)
    )
    return repo.get_all(
        skip=skip,
        limit=limit,
        status=status,
        payment_method=payment_method,
        course_id=course_id,
        user_id=user_id,
    )


@router.get("/mine", response_model=list[OrderResponse], summary="List my orders")
async def list_my_orders(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[Order]:
    return OrderRepository(db).get_for_user(user.id)


@router.get(
    "/pending_transfers",
    response_model=list[OrderResponse],
    summary="Bank transfers awaiting review",
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Forbidden"}},
)
async def list_pending_transfers(
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[Order]:
    """Bank transfer orders that still need an admin decision, oldest first."""
    return OrderRepository(db).get_pending_transfers()


@router.get(
    "/number/{order_number}",
    response_model=OrderResponse,
    summary="Get order by number",
    responses={404: {"description": "Order not found"}},
)
async def get_order_by_number(
    order_number: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Order:
    return _get_visible_order(OrderRepository(db).get_by_number(order_number), user)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
    responses={403: {"description": "Forbidden"}, 404: {"description": "Order not found"}},
)
async def get_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Order:
    return _get_visible_order(OrderRepository(db).get_by_id(order_id), user)


@router.post(
    "/{order_id}/transfer_sent",
    response_model=OrderTransitionResponse,
    summary="Report bank transfer as sent",
    responses={
        403: {"description": "Not the order owner"},
        404: {"description": "Order not found"},
        409: {"description": "Order is not awaiting a transfer"},
    },
)
async def mark_transfer_sent(
    order_id: UUID,
    data: TransferSentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> OrderTransitionResponse:
    result = ReconciliationService(db).mark_transfer_sent(
        order_id, user.id, reference=data.reference, proof_url=data.proof_url
    )
    return _transition_response(result, background_tasks)


@router.post(
    "/{order_id}/cancel",
    response_model=OrderTransitionResponse,
    summary="Cancel order",
    responses={
        403: {"description": "Not the order owner"},
        404: {"description": "Order not found"},
        409: {"description": "Order cannot be cancelled"},
    },
)
async def cancel_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> OrderTransitionResponse:
    result = ReconciliationService(db).cancel(order_id, user_id=user.id, is_admin=user.is_admin)
    return _transition_response(result, background_tasks)


@router.post(
    "/{order_id}/confirm",
    response_model=OrderTransitionResponse,
    summary="Confirm payment",
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Order not found"},
        409: {"description": "Order cannot be confirmed or was rejected during finalization"},
    },
)
async def confirm_payment(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> OrderTransitionResponse:
    """Confirm a payment and enroll the student. Repeating it is a no-op."""
    result = ReconciliationService(db).confirm_payment(order_id)
    return _transition_response(result, background_tasks)


@router.post(
    "/{order_id}/reject",
    response_model=OrderTransitionResponse,
    summary="Reject payment",
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Order not found"},
        409: {"description": "Order is not under review"},
    },
)
async def reject_payment(
    order_id: UUID,
    data: RejectPaymentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> OrderTransitionResponse:
    result = ReconciliationService(db).reject_payment(order_id, data.reason)
    return _transition_response(result, background_tasks)


@router.post(
    "/{order_id}/refund",
    response_model=OrderTransitionResponse,
    summary="Refund order",
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Order not found"},
        409: {"description": "Order is not paid"},
    },
)
async def refund_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> OrderTransitionResponse:
    """Refund a paid order and cancel the enrollment it granted."""
    result = ReconciliationService(db).refund(order_id)
    return _transition_response(result, background_tasks)
