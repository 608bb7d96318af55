from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from bidengine.app.common.llm_client import LLMClient
from bidengine.app.common.record_store import RecordStoreClient
from bidengine.app.common.workflow import WorkflowClient
from bidengine.app.core import dependencies
from bidengine.app.core.config import Settings, get_settings
from bidengine.app.main import create_app

STORE_URL = "https://store.test/obj"


class FakeRecordStore:
    """In-memory stand-in for the record store's object API."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []
        self.fail = False
        self.fail_on: set = set()
        self._next_id = 1

    def add(self, type_name: str, **fields: Any) -> str:
        record_id = fields.pop("_id", None) or self._new_id()
        self.tables.setdefault(type_name, []).append({"_id": record_id, **fields})
        return record_id

    def records(self, type_name: str) -> List[Dict[str, Any]]:
        return self.tables.get(type_name, [])

    def find(self, type_name: str, record_id: str) -> Optional[Dict[str, Any]]:
        for record in self.records(type_name):
            if record["_id"] == record_id:
                return record
        return None

    def client(self) -> RecordStoreClient:
        return RecordStoreClient(STORE_URL, "test-key", transport=httpx.MockTransport(self.handle))

    def _new_id(self) -> str:
        record_id = f"{1700000000000 + self._next_id}x{100 + self._next_id}"
        self._next_id += 1
        return record_id

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail or request.method in self.fail_on:
            return httpx.Response(500, text="upstream exploded")

        parts = request.url.path[len("/obj/"):].split("/")
        type_name = parts[0]
        record_id = parts[1] if len(parts) > 1 else None

        if request.method == "GET" and record_id:
            record = self.find(type_name, record_id)
            if record is None:
                return httpx.Response(404, json={"status": "NOT_FOUND"})
            return httpx.Response(200, json={"response": record})
        if request.method == "GET":
            return httpx.Response(200, json={"response": self._search(type_name, request.url.params)})
        if request.method == "POST":
            new_id = self.add(type_name, **json.loads(request.content))
            return httpx.Response(201, json={"status": "success", "id": new_id})
        if request.method == "PATCH":
            record = self.find(type_name, record_id)
            if record is None:
                return httpx.Response(404, json={"status": "NOT_FOUND"})
            record.update(json.loads(request.content))
            return httpx.Response(204)
        return httpx.Response(405)

    def _search(self, type_name: str, params: httpx.QueryParams) -> Dict[str, Any]:
        results = list(self.records(type_name))
        for constraint in json.loads(params.get("constraints") or "[]"):
            key, value = constraint["key"], constraint["value"]
            if constraint["constraint_type"] == "in":
                results = [r for r in results if r.get(key) in value]
            else:
                results = [r for r in results if r.get(key) == value]

        sort_field = params.get("sort_field")
        if sort_field:
            results.sort(key=lambda r: r.get(sort_field) or "", reverse=params.get("descending") == "true")

        cursor = int(params.get("cursor") or 0)
        limit = int(params.get("limit") or 100)
        page = results[cursor:cursor + limit]
        return {"results": page, "count": len(page), "remaining": max(len(results) - cursor - len(page), 0)}


class FakeWorkflow:
    """Records jobs posted to a workflow webhook and answers with ``reply``."""

    def __init__(self) -> None:
        self.jobs: List[Dict[str, Any]] = []
        self.reply: Any = {}
        self.status_code = 200

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.jobs.append(json.loads(request.content))
        if self.status_code >= 400:
            return httpx.Response(self.status_code, text="workflow failed")
        return httpx.Response(self.status_code, json=self.reply)

    def client(self) -> WorkflowClient:
        return WorkflowClient("https://flows.test/hook", transport=httpx.MockTransport(self.handle))


class FakeGateway:
    """Billing gateway double returning canned Stripe-shaped dicts."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.latest: Optional[Dict[str, Any]] = None

    def create_customer(self, *, email, name, metadata):
        self.calls.append(("create_customer", email, name, metadata))
        return {"id": "cus_123", "email": email, "name": name}

    def create_checkout_session(self, **kwargs):
        self.calls.append(("create_checkout_session", kwargs))
        return {"id": "cs_123", "url": "https://checkout.stripe.test/cs_123"}

    def create_portal_session(self, *, customer_id, return_url):
        self.calls.append(("create_portal_session", customer_id, return_url))
        return {"id": "bps_123", "url": "https://billing.stripe.test/p/bps_123"}

    def retrieve_subscription(self, subscription_id):
        return self.subscriptions[subscription_id]

    def retrieve_customer(self, customer_id):
        return self.customers.get(customer_id, {"id": customer_id})

    def latest_subscription(self, customer_id):
        self.calls.append(("latest_subscription", customer_id))
        return self.latest



class FakeLLM:
    """Messages API double: answers with queued ``replies`` after any queued ``failures``."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.replies: List[str] = []
        self.failures: List[int] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failures:
            return httpx.Response(self.failures.pop(0), text="overloaded", headers={"retry-after": "0"})
        text = self.replies.pop(0) if self.replies else ""
        return httpx.Response(200, json={"content": [{"type": "text", "text": text}], "usage": {"output_tokens": 12}})

    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def prompts(self) -> List[str]:
        return [payload["messages"][0]["content"] for payload in self.payloads()]

    def client(self) -> LLMClient:
        return LLMClient(
            "sk-ant-test",
            base_url="https://llm.test/v1",
            model="writer-model",
            max_attempts=3,
            max_wait_seconds=0,
            transport=httpx.MockTransport(self.handle),
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        record_store_url=STORE_URL,
        record_store_api_key="test-key",
        stripe_secret_key="sk_test_123",
        stripe_price_id="price_123",
        stripe_webhook_secret="whsec_test",
        bidgate_webhook_url="https://flows.test/bidgate",
        bidvault_webhook_url="https://flows.test/bidvault",
        public_base_url="https://app.test",
        anthropic_api_key="sk-ant-test",
        llm_scoring_model="scoring-model",
        llm_question_delay=0,
        llm_retry_max_wait=0,
    )


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def workflow() -> FakeWorkflow:
    return FakeWorkflow()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def app(settings, store, workflow, gateway, llm):
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[dependencies.get_record_store] = store.client
    application.dependency_overrides[dependencies.get_bidgate_workflow] = workflow.client
    application.dependency_overrides[dependencies.get_bidvault_workflow] = workflow.client
    application.dependency_overrides[dependencies.get_billing_gateway] = lambda: gateway
    application.dependency_overrides[dependencies.get_llm_client] = llm.client
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
