"""Payment gateway webhook endpoints."""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from course_checkout import tasks
from course_checkout.core.database import get_db
from course_checkout.models.order import Order, PaymentMethod
from course_checkout.repositories.order_repository import OrderRepository
from course_checkout.services.payment_provider import (
    GatewayPayment,
    PaymentGatewayError,
    PaymentProviderBase,
    get_payment_provider,
)
from course_checkout.services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_mercadopago_provider() -> PaymentProviderBase:
    return get_payment_provider(PaymentMethod.MERCADOPAGO)


def _find_order(repo: OrderRepository, payment: GatewayPayment) -> Order | None:
    if payment.order_reference:
        try:
            order = repo.get_by_id(UUID(payment.order_reference))
        except ValueError:
            order = repo.get_by_number(payment.order_reference)
        if order:
            return order
    order = repo.get_by_gateway_payment_id(payment.payment_id)
    if order:
        return order
    if payment.preference_id:
        return repo.get_by_gateway_preference_id(payment.preference_id)
    return None


@router.post("/mercadopago")
async def handle_mercadopago_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_signature: str | None = Header(None, alias="x-signature"),
    x_request_id: str | None = Header(None, alias="x-request-id"),
    db: Session = Depends(get_db),
    provider: PaymentProviderBase = Depends(get_mercadopago_provider),
) -> dict[str, Any]:
    """Handle MercadoPago payment notifications.

    Anything that is not a client error is acknowledged with 200 so the
    gateway stops retrying; the payment is looked up again on the next
    notification for the same order.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from None
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    notification = provider.parse_webhook(payload)
    data_id = notification.data_id or request.query_params.get("data.id")
    if not data_id:
        raise HTTPException(status_code=400, detail="Missing data.id")

    if not provider.verify_webhook_signature(data_id, x_signature, x_request_id):
        raise HTTPException(status_code=401, detail="Invalid signature")

    event_type = notification.event_type or request.query_params.get("type", "")
    if event_type != "payment":
        return {"status": "ignored", "reason": f"unsupported event type: {event_type}"}

    try:
        payment = provider.get_payment(data_id)
    except PaymentGatewayError as e:
        logger.error("Could not fetch MercadoPago payment %s: %s", data_id, e)
        return {"status": "ignored", "reason": "payment lookup failed"}

    order = _find_order(OrderRepository(db), payment)
    if not order:
        logger.warning("No order for MercadoPago payment %s", payment.payment_id)
        return {"status": "ignored", "reason": "order not found"}

    result = ReconciliationService(db).apply_gateway_verdict(
        order.id,  # type: ignore[arg-type]
        payment,
    )
    if not result.ok:
        logger.warning(
            "Gateway verdict %s not applied to order %s: %s",
            payment.status,
            order.order_number,
            result.error.value if result.error else None,
        )
        return {
            "status": "ignored",
            "reason": result.error.value if result.error else "unknown",
            "order_status": result.order.status if result.order else None,
        }

    if not result.already_processed:
        background_tasks.add_task(tasks.request_notification_dispatch)
    return {
        "status": "processed",
        "order_status": result.order.status if result.order else None,
        "already_processed": result.already_processed,
    }
