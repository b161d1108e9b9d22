"""Payment gateway: Stripe Checkout sessions and webhook verification."""
import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import stripe
from pydantic import ValidationError

from app.config import settings
from app.exceptions import InvalidSignature, UpstreamFailure
from app.models.product import Product
from app.schemas.webhooks import WebhookEvent

logger = logging.getLogger(__name__)

# Stripe rejects longer product descriptions
MAX_DESCRIPTION_LENGTH = 500


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str
    payment_intent: Optional[str] = None


class PaymentGateway:
    """Stripe client for one platform account."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        currency: str = "usd",
        webhook_tolerance: int = 300,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.webhook_tolerance = webhook_tolerance

    def create_checkout_session(
        self,
        product: Product,
        buyer_email: str,
        user_id: str,
        success_url: str,
        cancel_url: str,
        destination_account: Optional[str] = None,
        application_fee: Optional[int] = None,
    ) -> CheckoutSession:
        """
        Create a hosted Checkout Session for a one-off product purchase.

        - Inline price_data, so no Stripe Price object has to exist
        - productId / userId metadata on the session and on its PaymentIntent;
          the webhook handler has no other way to find the purchase
        - Routes the creator's share to their Connect account when they have one
        """
        metadata = {"productId": product.uuid, "userId": user_id}
        payment_intent_data: dict = {"metadata": metadata}
        if destination_account:
            payment_intent_data["transfer_data"] = {"destination": destination_account}
            if application_fee is not None:
                payment_intent_data["application_fee_amount"] = application_fee

        description = (product.description or product.title)[:MAX_DESCRIPTION_LENGTH]

        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                mode="payment",
                payment_method_types=["card"],
                customer_email=buyer_email or None,
                line_items=[{
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": product.title,
                            "description": description,
                        },
                        "unit_amount": product.price,
                    },
                    "quantity": 1,
                }],
                metadata=metadata,
                payment_intent_data=payment_intent_data,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError:
            logger.exception(f"Stripe checkout session creation failed for product {product.uuid}")
            raise UpstreamFailure("Failed to create checkout session")

        return CheckoutSession(
            id=session.id,
            url=session.url,
            payment_intent=getattr(session, "payment_intent", None),
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify a webhook delivery and parse its envelope.

        Raises InvalidSignature for a missing or bad signature, an unset
        webhook secret, or a body that is not a Stripe event.
        """
        if not signature:
            raise InvalidSignature("Missing stripe-signature header")
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET is not set; rejecting webhook")
            raise InvalidSignature("Invalid signature")

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, self.webhook_tolerance
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise InvalidSignature("Invalid signature")

        try:
            return WebhookEvent.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Webhook payload is not a valid event: {e}")
            raise InvalidSignature("Invalid payload")


@lru_cache()
def get_payment_gateway() -> PaymentGateway:
    """Process-wide payment gateway; overridden in tests."""
    return PaymentGateway(
        secret_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.STRIPE_CURRENCY,
        webhook_tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
    )
