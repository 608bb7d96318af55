"""Stripe checkout, portal, status and webhook endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from starlette.concurrency import run_in_threadpool

from bidengine.app.core import dependencies
from bidengine.app.core.config import Settings, get_settings
from bidengine.app.core.errors import ConfigurationError, ValidationError
from bidengine.app.modules.clients.router import get_client_service
from bidengine.app.modules.clients.service import ClientService

from . import schemas
from .gateway import StripeGateway
from .service import BillingService

router = APIRouter(prefix="/stripe", tags=["billing"])


def get_billing_service(
    gateway: StripeGateway = Depends(dependencies.get_billing_gateway),
    clients: ClientService = Depends(get_client_service),
    settings: Settings = Depends(get_settings),
) -> BillingService:
    return BillingService(gateway, clients, settings)


@router.post("/create-checkout-session", response_model=schemas.RedirectResponse)
def create_checkout_session(
    payload: schemas.CheckoutRequest,
    origin: Optional[str] = Header(None),
    service: BillingService = Depends(get_billing_service),
):
    url = service.create_checkout(
        payload.user_id,
        payload.email,
        name=payload.name,
        company_name=payload.company_name,
        origin=origin,
    )
    return schemas.RedirectResponse(url=url)


@router.post("/portal", response_model=schemas.RedirectResponse)
def create_portal_session(
    payload: schemas.PortalRequest,
    origin: Optional[str] = Header(None),
    service: BillingService = Depends(get_billing_service),
):
    return schemas.RedirectResponse(url=service.create_portal(payload.user_id, origin=origin))


@router.get("/subscription", response_model=schemas.SubscriptionStatus)
def subscription_status(
    user_id: Optional[str] = Query(None, alias="userId"),
    service: BillingService = Depends(get_billing_service),
):
    return service.subscription_status(user_id)


@router.post("/webhook", response_model=schemas.WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    service: BillingService = Depends(get_billing_service),
):
    payload = await request.body()
    if not stripe_signature:
        raise ValidationError("No signature")
    if not settings.stripe_webhook_secret:
        raise ConfigurationError("BE_STRIPE_WEBHOOK_SECRET is not configured")

    event = StripeGateway.construct_event(payload, stripe_signature, settings.stripe_webhook_secret)
    await run_in_threadpool(service.handle_event, event)
    return schemas.WebhookAck()
