"""Reusable FastAPI dependencies."""

from __future__ import annotations

from typing import Generator

from fastapi import Depends

from bidengine.app.common.llm_client import LLMClient
from bidengine.app.common.record_store import RecordStoreClient
from bidengine.app.common.workflow import WorkflowClient
from bidengine.app.core.config import Settings, get_settings
from bidengine.app.core.errors import ConfigurationError
from bidengine.app.modules.billing.gateway import StripeGateway


def _require(value, name: str) -> str:
    if not value:
        raise ConfigurationError(f"{name} is not configured")
    return value


def get_record_store(settings: Settings = Depends(get_settings)) -> Generator[RecordStoreClient, None, None]:
    client = RecordStoreClient(
        _require(settings.record_store_url, "BE_RECORD_STORE_URL"),
        _require(settings.record_store_api_key, "BE_RECORD_STORE_API_KEY"),
        timeout=settings.record_store_timeout,
    )
    try:
        yield client
    finally:
        client.close()


def get_billing_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(_require(settings.stripe_secret_key, "BE_STRIPE_SECRET_KEY"))


def get_bidgate_workflow(settings: Settings = Depends(get_settings)) -> Generator[WorkflowClient, None, None]:
    client = WorkflowClient(
        _require(settings.bidgate_webhook_url, "BE_BIDGATE_WEBHOOK_URL"),
        timeout=settings.webhook_timeout,
    )
    try:
        yield client
    finally:
        client.close()


def get_bidvault_workflow(settings: Settings = Depends(get_settings)) -> Generator[WorkflowClient, None, None]:
    client = WorkflowClient(
        _require(settings.bidvault_webhook_url, "BE_BIDVAULT_WEBHOOK_URL"),
        timeout=settings.webhook_timeout,
    )
    try:
        yield client
    finally:
        client.close()


def get_llm_client(settings: Settings = Depends(get_settings)) -> Generator[LLMClient, None, None]:
    client = LLMClient(
        _require(settings.anthropic_api_key, "BE_ANTHROPIC_API_KEY"),
        base_url=settings.anthropic_base_url,
        model=settings.llm_model,
        api_version=settings.anthropic_version,
        timeout=settings.llm_timeout,
        max_attempts=settings.llm_max_attempts,
        max_wait_seconds=settings.llm_retry_max_wait,
    )
    try:
        yield client
    finally:
        client.close()
