"""Self-serve account setup after sign-up."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from bidengine.app.common import field_mapper
from bidengine.app.core.errors import UpstreamUnavailable, ValidationError
from bidengine.app.modules.clients.service import ClientService

logger = logging.getLogger(__name__)


def next_client_number() -> int:
    """Numeric display id for new clients: milliseconds since the epoch."""

    return int(time.time() * 1000)


class OnboardingService:
    def __init__(self, clients: ClientService) -> None:
        self._clients = clients

    def ensure_client(
        self,
        clerk_user_id: Optional[str],
        company_name: Optional[str],
        *,
        email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> str:
        """Return the client linked to ``clerk_user_id``, creating it if needed.

        An existing client always gets the submitted company name, since the
        billing webhook may have created it under the person's name. The user
        name is only filled in when missing.
        """

        if not clerk_user_id or not company_name:
            raise ValidationError("Missing required fields")

        try:
            existing = self._clients.find_raw_by_clerk_user_id(clerk_user_id)
        except UpstreamUnavailable:
            logger.warning("Client lookup failed for user %s, creating a new client", clerk_user_id)
            existing = None

        if existing is not None:
            changes: Dict[str, Any] = {"client_name": company_name}
            if user_name and not existing.get("user_name"):
                changes["user_name"] = user_name
            try:
                self._clients.update_client(existing["_id"], changes)
            except UpstreamUnavailable:
                # the account exists either way; setup continues with stale names
                logger.warning("Could not refresh names on client %s", existing["_id"])
            return str(existing["_id"])

        body = field_mapper.new_signup_client(
            clerk_user_id,
            company_name,
            client_number=next_client_number(),
            email=email,
            user_name=user_name,
        )
        try:
            client_id = self._clients.create_client(body)
        except UpstreamUnavailable as exc:
            raise UpstreamUnavailable("Failed to create account") from exc
        logger.info("Created client %s for user %s", client_id, clerk_user_id)
        return client_id
