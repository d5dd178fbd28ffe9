"""Translate service results into HTTP errors."""

from typing import NoReturn

from fastapi import HTTPException

from course_checkout.services.checkout_service import CheckoutError, CheckoutResult
from course_checkout.services.order_state_machine import TransitionError, TransitionResult

TRANSITION_STATUS_CODES = {
    TransitionError.ORDER_NOT_FOUND: 404,
    TransitionError.FORBIDDEN: 403,
    TransitionError.ILLEGAL_TRANSITION: 409,
    TransitionError.WRONG_PAYMENT_METHOD: 409,
    TransitionError.CAPACITY_EXCEEDED: 409,
    TransitionError.COUPON_EXHAUSTED: 409,
    TransitionError.ALREADY_ENROLLED: 409,
    TransitionError.UNSUPPORTED_VERDICT: 422,
    TransitionError.GATEWAY_UNAVAILABLE: 503,
}

CHECKOUT_STATUS_CODES = {
    CheckoutError.COURSE_NOT_FOUND: 404,
    CheckoutError.NOT_ELIGIBLE: 422,
    CheckoutError.INVALID_COUPON: 422,
    CheckoutError.CURRENCY_NOT_OFFERED: 422,
    CheckoutError.PAYMENT_REQUIRED: 422,
    CheckoutError.BANK_ACCOUNT_UNAVAILABLE: 422,
    CheckoutError.FINALIZATION_FAILED: 409,
    CheckoutError.GATEWAY_UNAVAILABLE: 503,
}


def raise_for_transition(result: TransitionResult) -> NoReturn:
    assert result.error is not None
    raise HTTPException(
        status_code=TRANSITION_STATUS_CODES[result.error],
        detail={"reason": result.error.value, "message": result.message},
    )


def raise_for_checkout(result: CheckoutResult) -> NoReturn:
    assert result.error is not None
    detail: dict[str, str | None] = {"reason": result.error.value, "message": result.message}
    if result.block_reason is not None:
        detail["cause"] = result.block_reason.value
    elif result.coupon is not None and result.coupon.rejection is not None:
        detail["cause"] = result.coupon.rejection.value
    elif result.transition is not None and result.transition.error is not None:
        detail["cause"] = result.transition.error.value
    if result.order is not None:
        detail["order_id"] = str(result.order.id)
    raise HTTPException(status_code=CHECKOUT_STATUS_CODES[result.error], detail=detail)
