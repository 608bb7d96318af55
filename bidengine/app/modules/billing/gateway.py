"""Stripe access for the billing routes.

The gateway hands plain dictionaries to the service layer so the rest of the
code never depends on the SDK's object model.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import stripe

from bidengine.app.core.errors import UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)


def _as_dict(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """Wraps the handful of Stripe endpoints the billing flow needs."""

    def __init__(self, api_key: str) -> None:
        self._client = stripe.StripeClient(api_key)

    def create_customer(self, *, email: str, name: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        customer = self._call(
            "create customer",
            self._client.customers.create,
            params={"email": email, "name": name, "metadata": metadata},
        )
        return _as_dict(customer)

    def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: str,
        trial_days: int,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        session = self._call(
            "create checkout session",
            self._client.checkout.sessions.create,
            params={
                "customer": customer_id,
                "mode": "subscription",
                "payment_method_types": ["card"],
                "line_items": [{"price": price_id, "quantity": 1}],
                "subscription_data": {"trial_period_days": trial_days, "metadata": metadata},
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
            },
        )
        return _as_dict(session)

    def create_portal_session(self, *, customer_id: str, return_url: str) -> Dict[str, Any]:
        session = self._call(
            "create portal session",
            self._client.billing_portal.sessions.create,
            params={"customer": customer_id, "return_url": return_url},
        )
        return _as_dict(session)

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return _as_dict(self._call("retrieve subscription", self._client.subscriptions.retrieve, subscription_id))

    def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        return _as_dict(self._call("retrieve customer", self._client.customers.retrieve, customer_id))

    def latest_subscription(self, customer_id: str) -> Optional[Dict[str, Any]]:
        subscriptions = self._call(
            "list subscriptions",
            self._client.subscriptions.list,
            params={"customer": customer_id, "limit": 1, "status": "all"},
        )
        data = _as_dict(subscriptions).get("data") or []
        return _as_dict(data[0]) if data else None

    @staticmethod
    def construct_event(payload: bytes, signature: str, secret: str) -> Dict[str, Any]:
        """Verify the signature header and return the event as a plain dict."""

        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        try:
            stripe.WebhookSignature.verify_header(body, signature, secret, stripe.Webhook.DEFAULT_TOLERANCE)
            event = json.loads(body)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise ValidationError("Invalid signature") from exc
        return event

    @staticmethod
    def _call(action: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except stripe.StripeError as exc:
            message = exc.user_message or str(exc) or f"Failed to {action}"
            logger.error("Stripe %s failed: %s", action, exc)
            raise UpstreamUnavailable(message) from exc
