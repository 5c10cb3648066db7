"""
Stripe Checkout integration

One-off card payments for marketplace orders. The amount is always in the
currency's minor unit (cents).
"""

from typing import Any, Dict, Optional
import json
import logging

import stripe
from starlette.concurrency import run_in_threadpool

from bepawa.core.config import settings

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when a checkout request cannot be fulfilled"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def validate_checkout_request(payload: Dict[str, Any]) -> None:
    amount = payload.get("amount")
    if amount is None or amount == "":
        raise PaymentError("Missing amount in request", 400)
    # bool is an int subclass; floats like 10.0 are not accepted either
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise PaymentError("Invalid amount. Must be a positive integer (in cents).", 400)
    if not payload.get("success_url") or not payload.get("cancel_url"):
        raise PaymentError("Missing success_url or cancel_url", 400)


class PaymentService:
    def __init__(self, secret_key: Optional[str] = None):
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY

    def _require_key(self) -> str:
        if not self.secret_key:
            raise PaymentError("Stripe secret key not set in environment.", 500)
        return self.secret_key

    async def create_checkout_session(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """Validate the request and open a hosted checkout page"""
        api_key = self._require_key()
        validate_checkout_request(payload)

        metadata = {
            key: str(payload[key])
            for key in ("order_id", "user_id")
            if payload.get(key)
        }
        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create,
                api_key=api_key,
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": payload.get("currency") or settings.STRIPE_DEFAULT_CURRENCY,
                        "product_data": {"name": payload.get("productName") or "Checkout"},
                        "unit_amount": payload["amount"],
                    },
                    "quantity": 1,
                }],
                mode="payment",
                success_url=payload["success_url"],
                cancel_url=payload["cancel_url"],
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout error: {e}")
            raise PaymentError(getattr(e, "user_message", None) or str(e) or "Internal server error", 500) from e

        logger.info(f"Checkout session {session.id} created for {payload['amount']}")
        return {"id": session.id, "url": session.url}

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a webhook delivery and return the event as plain JSON"""
        if not settings.STRIPE_WEBHOOK_SECRET:
            raise PaymentError("Stripe webhook secret not set in environment.", 500)
        try:
            stripe.Webhook.construct_event(payload, signature or "", settings.STRIPE_WEBHOOK_SECRET)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise PaymentError(f"Webhook Error: {e}", 400) from e
        return json.loads(payload)
