"""Payment gateway abstraction.

The gateway is treated as an opaque service: the core asks it to open a
checkout, later looks up a payment by ID, and receives a success/failure
verdict. Only MercadoPago is wired in.
"""

import hashlib
import hmac
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

import httpx

from course_checkout.core.config import settings
from course_checkout.models.order import PaymentMethod

logger = logging.getLogger(__name__)

# Maximum age of a webhook signature timestamp, and tolerated clock skew.
WEBHOOK_MAX_AGE_SECONDS = 5 * 60
WEBHOOK_MAX_SKEW_SECONDS = 60


class PaymentGatewayError(Exception):
    """The gateway could not be reached or returned an unusable response."""


@dataclass
class CheckoutSession:
    """Checkout session result from provider."""

    preference_id: str
    checkout_url: str


@dataclass
class GatewayPayment:
    """A payment as reported by the gateway."""

    payment_id: str
    status: str
    status_detail: str | None = None
    order_reference: str | None = None
    preference_id: str | None = None
    amount: Decimal | None = None


@dataclass
class WebhookNotification:
    """Result of parsing a webhook body."""

    event_type: str
    data_id: str | None = None
    action: str | None = None


class PaymentProviderBase(ABC):
    """Abstract base class for payment providers."""

    @property
    @abstractmethod
    def payment_method(self) -> PaymentMethod:
        """Return the payment method this provider serves."""
        pass  # pragma: no cover

    @abstractmethod
    def create_checkout_session(
        self,
        order_id: UUID,
        course_id: UUID,
        title: str,
        amount: Decimal,
        currency: str,
        payer_email: str,
        payer_name: str | None,
        success_url: str,
        failure_url: str,
        pending_url: str,
        notification_url: str,
    ) -> CheckoutSession:
        """Open a hosted checkout for an order."""
        pass  # pragma: no cover

    @abstractmethod
    def get_payment(self, payment_id: str) -> GatewayPayment:
        """Fetch a payment and its verdict."""
        pass  # pragma: no cover

    @abstractmethod
    def verify_webhook_signature(
        self,
        data_id: str,
        signature: str | None,
        request_id: str | None,
        now: float | None = None,
    ) -> bool:
        """Verify the webhook signature."""
        pass  # pragma: no cover

    @abstractmethod
    def parse_webhook(self, payload: dict[str, Any]) -> WebhookNotification:
        """Parse a webhook payload and return structured result."""
        pass  # pragma: no cover


def _parse_signature_header(signature: str) -> dict[str, str]:
    parts: dict[str, str] = {}
    for part in signature.split(","):
        key, _, value = part.partition("=")
        if key and value:
            parts[key.strip()] = value.strip()
    return parts


class MercadoPagoProvider(PaymentProviderBase):
    """MercadoPago Checkout Pro over its REST API."""

    def __init__(
        self,
        access_token: str | None = None,
        webhook_secret: str | None = None,
        sandbox: bool | None = None,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.access_token = access_token or settings.mercadopago_access_token
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.mercadopago_webhook_secret
        )
        self.sandbox = settings.mercadopago_sandbox if sandbox is None else sandbox
        self.base_url = (base_url or settings.mercadopago_api_url).rstrip("/")
        self.transport = transport

    @property
    def payment_method(self) -> PaymentMethod:
        return PaymentMethod.MERCADOPAGO

    def _request(
        self, method: str, endpoint: str, data: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Make an authenticated request to the MercadoPago API."""
        if not self.access_token:
            raise PaymentGatewayError("MercadoPago access token is not configured")

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        try:
            with httpx.Client(timeout=30.0, transport=self.transport) as client:
                resp = client.request(
                    method, f"{self.base_url}{endpoint}", json=data, headers=headers
                )
                resp.raise_for_status()
                result: dict[str, Any] = resp.json()
                return result
        except httpx.HTTPError as e:
            raise PaymentGatewayError(f"MercadoPago request failed: {e}") from e
        except ValueError as e:
            raise PaymentGatewayError("MercadoPago returned an invalid JSON body") from e

    def create_checkout_session(
        self,
        order_id: UUID,
        course_id: UUID,
        title: str,
        amount: Decimal,
        currency: str,
        payer_email: str,
        payer_name: str | None,
        success_url: str,
        failure_url: str,
        pending_url: str,
        notification_url: str,
    ) -> CheckoutSession:
        """Create a checkout preference and return its redirect URL."""
        body: dict[str, Any] = {
            "items": [
                {
                    "id": str(course_id),
                    "title": title,
                    "quantity": 1,
                    "unit_price": float(amount),
                    "currency_id": currency,
                }
            ],
            "external_reference": str(order_id),
            "metadata": {"order_id": str(order_id)},
            "payer": {"email": payer_email, "name": payer_name},
            "back_urls": {
                "success": success_url,
                "failure": failure_url,
                "pending": pending_url,
            },
            "notification_url": notification_url,
            "auto_return": "approved",
        }
        response = self._request("POST", "/checkout/preferences", body)

        preference_id = response.get("id")
        init_point = response.get("sandbox_init_point" if self.sandbox else "init_point")
        if not preference_id or not init_point:
            raise PaymentGatewayError("MercadoPago preference response is missing fields")

        return CheckoutSession(preference_id=str(preference_id), checkout_url=str(init_point))

    def get_payment(self, payment_id: str) -> GatewayPayment:
        """Fetch a payment from MercadoPago."""
        response = self._request("GET", f"/v1/payments/{payment_id}")
        metadata = response.get("metadata") or {}
        amount = response.get("transaction_amount")

        return GatewayPayment(
            payment_id=str(response.get("id") or payment_id),
            status=str(response.get("status") or "unknown"),
            status_detail=response.get("status_detail"),
            order_reference=metadata.get("order_id") or response.get("external_reference"),
            preference_id=response.get("preference_id"),
            amount=Decimal(str(amount)) if amount is not None else None,
        )

    def verify_webhook_signature(
        self,
        data_id: str,
        signature: str | None,
        request_id: str | None,
        now: float | None = None,
    ) -> bool:
        """Verify an ``x-signature: ts=<seconds>,v1=<hex>`` header.

        The HMAC-SHA256 covers ``id:<data.id>;request-id:<x-request-id>;ts:<ts>;``.
        Without a configured secret verification is skipped.
        """
        if not self.webhook_secret:
            logger.warning("MercadoPago webhook secret not configured, skipping verification")
            return True

        if not signature or not request_id:
            return False

        parts = _parse_signature_header(signature)
        timestamp = parts.get("ts")
        received = parts.get("v1")
        if not timestamp or not received:
            return False

        try:
            sent_at = int(timestamp)
        except ValueError:
            return False

        age = (now if now is not None else time.time()) - sent_at
        if age > WEBHOOK_MAX_AGE_SECONDS or age < -WEBHOOK_MAX_SKEW_SECONDS:
            logger.warning("Webhook timestamp outside accepted window: %.0fs", age)
            return False

        manifest = f"id:{data_id};request-id:{request_id};ts:{timestamp};"
        expected = hmac.new(
            self.webhook_secret.encode(),
            manifest.encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, received)

    def parse_webhook(self, payload: dict[str, Any]) -> WebhookNotification:
        """Parse a MercadoPago notification body."""
        data = payload.get("data") or {}
        data_id = data.get("id") if isinstance(data, dict) else None
        return WebhookNotification(
            event_type=str(payload.get("type") or payload.get("topic") or ""),
            data_id=str(data_id) if data_id is not None else None,
            action=payload.get("action"),
        )


def get_payment_provider(method: PaymentMethod) -> PaymentProviderBase:
    """Factory function to get the provider for a payment method."""
    providers: dict[PaymentMethod, type[PaymentProviderBase]] = {
        PaymentMethod.MERCADOPAGO: MercadoPagoProvider,
    }

    provider_class = providers.get(method)
    if not provider_class:
        raise ValueError(f"No payment provider for method: {method}")

    return provider_class()
