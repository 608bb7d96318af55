"""Client record lookups and admin-side client creation."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from bidengine.app.common import field_mapper
from bidengine.app.common.models import Client
from bidengine.app.common.record_store import RecordStoreClient, equals
from bidengine.app.core.errors import NotFoundError, UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)

CLIENT_TYPE = "Clients"
CLERK_USER_ID_FIELD = "Clerk_user_id"


class ClientService:
    """Encapsulate reads and writes of Client records."""

    def __init__(self, record_store: RecordStoreClient) -> None:
        self._store = record_store

    # ------------------------------------------------------------------ reads
    def list_clients(self, limit: int = 100) -> List[Client]:
        page = self._store.search(
            CLIENT_TYPE,
            sort_field=field_mapper.CREATED_DATE,
            descending=True,
            limit=limit,
        )
        return [field_mapper.map_client(record) for record in page.results]

    def get_client(self, client_id: str) -> Client:
        record = self._store.get(CLIENT_TYPE, client_id)
        if record is None:
            raise NotFoundError("Client not found")
        return field_mapper.map_client(record)

    def find_raw_by_invite_token(self, token: str) -> Optional[Dict[str, Any]]:
        return self._store.find_one(CLIENT_TYPE, [equals("invite_token", token)])

    def find_raw_by_clerk_user_id(self, clerk_user_id: str) -> Optional[Dict[str, Any]]:
        return self._store.find_one(CLIENT_TYPE, [equals(CLERK_USER_ID_FIELD, clerk_user_id)])

    def find_by_clerk_user_id(self, clerk_user_id: str) -> Optional[Client]:
        record = self.find_raw_by_clerk_user_id(clerk_user_id)
        return field_mapper.map_client(record) if record else None

    def find_by_stripe_customer(self, stripe_customer_id: str) -> Optional[Client]:
        record = self._store.find_one(CLIENT_TYPE, [equals("stripe_customer_id", stripe_customer_id)])
        return field_mapper.map_client(record) if record else None

    # ------------------------------------------------------------------ writes
    def create_invited_client(self, company_name: Optional[str], email: Optional[str]) -> Tuple[Client, bool]:
        """Create a client with an invite token, or return the one that has it.

        Returns ``(client, existed)``. The existence check and the create are
        two separate calls, so concurrent requests can still both create.
        """

        if not company_name:
            raise ValidationError("Company name is required")

        invite_token = field_mapper.invite_token_for(company_name)
        try:
            existing = self.find_raw_by_invite_token(invite_token)
        except UpstreamUnavailable:
            logger.warning("Invite token lookup failed for %r, creating a new client", invite_token)
            existing = None
        if existing is not None:
            return field_mapper.map_client(existing), True

        new_id = self._store.create(
            CLIENT_TYPE,
            field_mapper.new_invited_client(company_name, email, invite_token),
        )
        logger.info("Created client %s with invite token %s", new_id, invite_token)

        record = self._store.get(CLIENT_TYPE, new_id) or {"_id": new_id}
        client = field_mapper.map_client(record)
        if not client.invite_token:
            client.invite_token = invite_token
        return client, False

    def update_client(self, client_id: str, changes: Dict[str, Any]) -> None:
        self._store.update(CLIENT_TYPE, client_id, changes)

    def create_client(self, body: Dict[str, Any]) -> str:
        return self._store.create(CLIENT_TYPE, body)
