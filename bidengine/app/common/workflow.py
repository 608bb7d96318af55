"""Client for the workflow-automation webhooks that analyse documents."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from bidengine.app.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class WorkflowWebhookError(UpstreamUnavailable):
    """Raised when the workflow engine rejects or cannot receive a job."""


class WorkflowClient:
    """Posts a JSON job to one webhook and returns the engine's reply."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 300.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def submit(self, payload: Dict[str, Any], *, failure_message: str) -> Dict[str, Any]:
        try:
            response = self._http.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Workflow webhook %s unreachable: %s", self.url, exc)
            raise WorkflowWebhookError(failure_message, details=str(exc)) from exc

        if response.is_error:
            logger.error("Workflow webhook %s returned %s: %s", self.url, response.status_code, response.text)
            raise WorkflowWebhookError(failure_message, details=response.text)

        try:
            result = response.json()
        except ValueError as exc:
            logger.error("Workflow webhook %s returned invalid JSON: %s", self.url, response.text[:500])
            raise WorkflowWebhookError(failure_message, details=response.text) from exc

        # the engine answers with either one object or a one-element list
        if isinstance(result, list):
            result = result[0] if result else {}
        if not isinstance(result, dict):
            return {}
        return result
