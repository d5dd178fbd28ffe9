"""Checkout API endpoints."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from course_checkout import tasks
from course_checkout.core.auth import CurrentUser, get_current_user
from course_checkout.core.database import get_db
from course_checkout.models.order import Currency, PaymentMethod
from course_checkout.routers.errors import raise_for_checkout
from course_checkout.schemas.bank_account import BankAccountResponse
from course_checkout.schemas.checkout import (
    CheckoutContextResponse,
    CheckoutInitiateRequest,
    CheckoutInitiateResponse,
    EligibilityResponse,
    PricingResponse,
)
from course_checkout.schemas.coupon import ApplyCouponRequest, CouponValidationResponse
from course_checkout.schemas.course import CourseResponse
from course_checkout.schemas.order import OrderResponse
from course_checkout.services.checkout_service import CheckoutService
from course_checkout.services.coupon_service import CouponValidation
from course_checkout.services.pricing import Pricing

router = APIRouter()


def _pricing_response(pricing: Pricing | None) -> PricingResponse | None:
    if pricing is None:
        return None
    return PricingResponse(
        currency=pricing.currency.value,
        original_price=pricing.original_price,
        discount_percent=pricing.discount_percent,
        discount_amount=pricing.discount_amount,
        final_amount=pricing.final_amount,
        is_free=pricing.is_free,
    )


def _coupon_response(validation: CouponValidation) -> CouponValidationResponse:
    return CouponValidationResponse(
        valid=validation.valid,
        code=validation.code,
        discount_percent=validation.snapshot.discount_percent if validation.snapshot else None,
        rejection=validation.rejection.value if validation.rejection else None,
        message=validation.message,
    )


@router.get(
    "/{course_id}",
    response_model=CheckoutContextResponse,
    summary="Get checkout context",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Course not found"},
    },
)
async def get_checkout_context(
    course_id: UUID,
    coupon_code: str | None = Query(default=None, max_length=64),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CheckoutContextResponse:
    """Everything the checkout page renders, including active bank accounts."""
    context = CheckoutService(db).get_context(user, course_id, coupon_code)
    if context is None:
        raise HTTPException(status_code=404, detail="Course not found")

    return CheckoutContextResponse(
        course=CourseResponse.model_validate(context.course),
        eligibility=EligibilityResponse(
            eligible=context.eligibility.eligible,
            reason=context.eligibility.reason.value if context.eligibility.reason else None,
            message=context.eligibility.message,
        ),
        coupon=_coupon_response(context.coupon) if context.coupon else None,
        pricing_usd=_pricing_response(context.pricing_usd),
        pricing_uyu=_pricing_response(context.pricing_uyu),
        pending_order=(
            OrderResponse.model_validate(context.pending_order) if context.pending_order else None
        ),
        bank_accounts=[
            BankAccountResponse.model_validate(account) for account in context.bank_accounts
        ],
    )


@router.post(
    "/coupon",
    response_model=CouponValidationResponse,
    summary="Validate coupon",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Course not found"},
    },
)
async def apply_coupon(
    data: ApplyCouponRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CouponValidationResponse:
    """Check a coupon code without consuming it."""
    validation = CheckoutService(db).apply_coupon(user, data.course_id, data.code)
    if validation is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return _coupon_response(validation)


@router.post(
    "/",
    response_model=CheckoutInitiateResponse,
    status_code=201,
    summary="Start checkout",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Course not found"},
        409: {"description": "Order could not be finalized"},
        422: {"description": "Not eligible, invalid coupon or currency not offered"},
        503: {"description": "Payment gateway unavailable"},
    },
)
async def initiate_checkout(
    data: CheckoutInitiateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CheckoutInitiateResponse:
    """Create an order and start payment.

    Free orders come back already ``paid``; bank transfers come back
    ``pending_payment``; MercadoPago orders include the hosted checkout URL.
    """
    result = CheckoutService(db).initiate(
        user,
        data.course_id,
        PaymentMethod(data.payment_method),
        Currency(data.currency),
        data.coupon_code,
        data.bank_account_id,
    )
    if not result.ok:
        raise_for_checkout(result)
    if result.order.payment_method != PaymentMethod.MERCADOPAGO.value:  # type: ignore[union-attr]
        background_tasks.add_task(tasks.request_notification_dispatch)

    return CheckoutInitiateResponse(
        order=OrderResponse.model_validate(result.order),
        redirect_url=result.redirect_url,
    )
