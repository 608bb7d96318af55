"""Subscription checkout, portal access and webhook-driven status sync."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bidengine.app.common import field_mapper
from bidengine.app.core.config import Settings
from bidengine.app.core.errors import ConfigurationError, NotFoundError, ValidationError
from bidengine.app.modules.clients.service import ClientService
from bidengine.app.modules.onboarding.service import next_client_number

from .gateway import StripeGateway
from .schemas import SubscriptionStatus

logger = logging.getLogger(__name__)

# Stripe subscription status -> status stored on the client record
SUBSCRIPTION_STATUS_MAP = {
    "trialing": "trialing",
    "active": "active",
    "past_due": "past_due",
    "canceled": "expired",
    "unpaid": "expired",
}


def to_iso(timestamp: Optional[int]) -> Optional[str]:
    if not timestamp:
        return None
    moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def period_end_of(subscription: Dict[str, Any]) -> Optional[int]:
    """Period end lives on the subscription in older API versions, on its items in newer ones."""

    if subscription.get("current_period_end"):
        return subscription["current_period_end"]
    items = (subscription.get("items") or {}).get("data") or []
    for item in items:
        if item.get("current_period_end"):
            return item["current_period_end"]
    return None


class BillingService:
    def __init__(self, gateway: StripeGateway, clients: ClientService, settings: Settings) -> None:
        self._gateway = gateway
        self._clients = clients
        self._settings = settings

    def _base_url(self, origin: Optional[str]) -> str:
        return (origin or self._settings.public_base_url).rstrip("/")

    # ------------------------------------------------------------------ sessions
    def create_checkout(
        self,
        user_id: Optional[str],
        email: Optional[str],
        *,
        name: Optional[str] = None,
        company_name: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> str:
        if not user_id or not email:
            raise ValidationError("Missing user info")
        price_id = self._settings.stripe_price_id
        if not price_id:
            raise ConfigurationError("BE_STRIPE_PRICE_ID is not configured")

        metadata = {"clerk_user_id": user_id, "company_name": company_name or ""}
        logger.info("Creating checkout for %s (company %r, price %s)", email, company_name, price_id)

        customer = self._gateway.create_customer(
            email=email,
            name=company_name or name or email,
            metadata=metadata,
        )
        logger.info("Customer created: %s", customer.get("id"))

        base_url = self._base_url(origin)
        session = self._gateway.create_checkout_session(
            customer_id=customer["id"],
            price_id=price_id,
            trial_days=self._settings.stripe_trial_days,
            metadata=metadata,
            success_url=f"{base_url}/subscribe/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/checkout?canceled=true",
        )
        logger.info("Checkout session created: %s", session.get("id"))
        return session["url"]

    def create_portal(self, user_id: Optional[str], *, origin: Optional[str] = None) -> str:
        if not user_id:
            raise ValidationError("Missing user ID")
        client = self._clients.find_by_clerk_user_id(user_id)
        if client is None or not client.stripe_customer_id:
            raise NotFoundError("No subscription found")

        session = self._gateway.create_portal_session(
            customer_id=client.stripe_customer_id,
            return_url=f"{self._base_url(origin)}/v/{client.id}",
        )
        return session["url"]

    def subscription_status(self, user_id: Optional[str]) -> SubscriptionStatus:
        if not user_id:
            raise ValidationError("Missing user ID")
        client = self._clients.find_by_clerk_user_id(user_id)
        if client is None or not client.stripe_customer_id:
            return SubscriptionStatus(status="none")

        subscription = self._gateway.latest_subscription(client.stripe_customer_id)
        if subscription is None:
            return SubscriptionStatus(status="none")
        return SubscriptionStatus(
            status=subscription.get("status") or "none",
            trial_end=to_iso(subscription.get("trial_end")),
            current_period_end=to_iso(period_end_of(subscription)),
        )

    # ------------------------------------------------------------------ webhook
    def handle_event(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        logger.info("Stripe event %s (%s)", event_type, event.get("id"))

        if event_type == "checkout.session.completed":
            self._on_checkout_completed(obj)
        elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
            status = SUBSCRIPTION_STATUS_MAP.get(obj.get("status"), obj.get("status"))
            self.sync_subscription(
                obj.get("customer"),
                status,
                subscription_id=obj.get("id"),
                trial_end_date=to_iso(obj.get("trial_end")),
                current_period_end=to_iso(period_end_of(obj)),
            )
        elif event_type == "customer.subscription.deleted":
            self.sync_subscription(obj.get("customer"), "expired", subscription_id=obj.get("id"))
        elif event_type == "invoice.payment_succeeded":
            subscription_id = obj.get("subscription")
            if subscription_id:
                subscription = self._gateway.retrieve_subscription(subscription_id)
                self.sync_subscription(
                    obj.get("customer"),
                    "active",
                    subscription_id=subscription_id,
                    current_period_end=to_iso(period_end_of(subscription)),
                )
        elif event_type == "invoice.payment_failed":
            self.sync_subscription(obj.get("customer"), "past_due")
        else:
            logger.info("Unhandled event type: %s", event_type)

    def _on_checkout_completed(self, session: Dict[str, Any]) -> None:
        customer_id = session.get("customer")
        subscription_id = session.get("subscription")
        clerk_user_id = (session.get("metadata") or {}).get("clerk_user_id")
        if not subscription_id or not clerk_user_id:
            return

        subscription = self._gateway.retrieve_subscription(subscription_id)
        customer = self._gateway.retrieve_customer(customer_id)
        status = "trialing" if subscription.get("status") == "trialing" else "active"
        trial_end = to_iso(subscription.get("trial_end"))

        period_end = to_iso(period_end_of(subscription))
        if self.sync_subscription(
            customer_id,
            status,
            subscription_id=subscription_id,
            trial_end_date=trial_end,
            current_period_end=period_end,
        ):
            return

        existing = self._clients.find_by_clerk_user_id(clerk_user_id)
        if existing is not None:
            # clients set up before paying have no customer id yet
            changes = field_mapper.subscription_update(
                status,
                subscription_id=subscription_id,
                trial_end_date=trial_end,
                current_period_end=period_end,
            )
            changes["stripe_customer_id"] = customer_id
            self._clients.update_client(existing.id, changes)
            logger.info("Client %s subscription -> %s", existing.id, status)
            return

        email = customer.get("email") or ""
        client_id = self._clients.create_client(
            field_mapper.new_billing_client(
                clerk_user_id,
                client_number=next_client_number(),
                email=email,
                name=customer.get("name") or email or "Unknown",
                stripe_customer_id=customer_id,
                subscription_status=status,
                trial_end_date=trial_end,
            )
        )
        logger.info("Created client %s from checkout for user %s", client_id, clerk_user_id)

    def sync_subscription(
        self,
        stripe_customer_id: Optional[str],
        subscription_status: str,
        *,
        subscription_id: Optional[str] = None,
        trial_end_date: Optional[str] = None,
        current_period_end: Optional[str] = None,
    ) -> bool:
        """Write subscription fields onto the client owning ``stripe_customer_id``."""

        if not stripe_customer_id:
            return False
        client = self._clients.find_by_stripe_customer(stripe_customer_id)
        if client is None:
            logger.warning("No client for Stripe customer %s, status %s not stored", stripe_customer_id, subscription_status)
            return False

        self._clients.update_client(
            client.id,
            field_mapper.subscription_update(
                subscription_status,
                subscription_id=subscription_id,
                trial_end_date=trial_end_date,
                current_period_end=current_period_end,
            ),
        )
        logger.info("Client %s subscription -> %s", client.id, subscription_status)
        return True
