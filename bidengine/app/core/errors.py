"""Error taxonomy shared by every module, plus the upstream failure policy."""

from __future__ import annotations

from typing import Any, Dict, Optional


class BidEngineError(Exception):
    """Base class for errors rendered as ``{"error": ...}`` responses."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.extra = extra or {}
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(BidEngineError):
    """Raised when a required request field is missing or unusable."""

    status_code = 400


class NotFoundError(BidEngineError):
    """Raised when an invite token, client or subscription cannot be found."""

    status_code = 404


class AlreadyAcceptedError(BidEngineError):
    """Raised when an invite is accepted a second time."""

    status_code = 400


class UpstreamUnavailable(BidEngineError):
    """Raised when the record store, billing provider or a webhook fails."""

    status_code = 500


class ConfigurationError(BidEngineError):
    """Raised when a credential or upstream URL is not configured."""

    status_code = 500


# Route name -> body returned with HTTP 200 when UpstreamUnavailable escapes
# that route. Routes missing from this table answer 500 {"error": ...}.
UPSTREAM_FAILURE_POLICY: Dict[str, Dict[str, Any]] = {
    "client_evidence": {"evidence": []},
    "client_evidence_records": {"records": []},
    "client_tenders": {"tenders": []},
    "client_projects": {"projects": []},
    "client_case_studies": {"case_studies": []},
    "tender_questions": {"questions": []},
    "validate_invite": {"valid": False},
}


def degraded_body(route_name: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return a fresh copy of the degraded body for ``route_name``, if any."""

    if route_name is None or route_name not in UPSTREAM_FAILURE_POLICY:
        return None
    return {key: (list(value) if isinstance(value, list) else value) for key, value in UPSTREAM_FAILURE_POLICY[route_name].items()}
