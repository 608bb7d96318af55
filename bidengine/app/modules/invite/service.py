"""Invite links: a client moves NO_INVITE -> INVITED -> ACCEPTED.

A client is INVITED once it carries an invite token and ACCEPTED once an
external auth user has claimed it. Acceptance is one-way and not idempotent.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from bidengine.app.common import field_mapper
from bidengine.app.common.models import Client
from bidengine.app.core.errors import AlreadyAcceptedError, NotFoundError, UpstreamUnavailable, ValidationError
from bidengine.app.modules.clients.service import ClientService

from .schemas import InviteStatus

logger = logging.getLogger(__name__)


class InviteState(str, enum.Enum):
    NO_INVITE = "no_invite"
    INVITED = "invited"
    ACCEPTED = "accepted"


def invite_state(client: Client) -> InviteState:
    if client.invite_accepted:
        return InviteState.ACCEPTED
    if client.invite_token:
        return InviteState.INVITED
    return InviteState.NO_INVITE


class InviteService:
    def __init__(self, clients: ClientService) -> None:
        self._clients = clients

    def validate(self, token: str) -> InviteStatus:
        if not token:
            return InviteStatus(valid=False)
        record = self._clients.find_raw_by_invite_token(token)
        if record is None:
            return InviteStatus(valid=False)
        client = field_mapper.map_client(record)
        return InviteStatus(
            valid=True,
            company_name=client.company_name,
            email=client.email,
            already_accepted=client.invite_accepted,
            client_id=client.id,
        )

    def accept(self, token: str, clerk_user_id: Optional[str], email: Optional[str]) -> str:
        """Link the invited client to ``clerk_user_id`` and return its id.

        ``subscription_status`` is set to ``active`` whatever it was before.
        """

        if not clerk_user_id:
            raise ValidationError("Missing clerk_user_id")

        try:
            record = self._clients.find_raw_by_invite_token(token)
        except UpstreamUnavailable as exc:
            raise NotFoundError("Invalid invite", status_code=400) from exc
        if record is None:
            raise NotFoundError("Invalid invite", status_code=400)

        client = field_mapper.map_client(record)
        if invite_state(client) is InviteState.ACCEPTED:
            raise AlreadyAcceptedError("Invite already accepted")

        try:
            self._clients.update_client(
                client.id,
                field_mapper.invite_acceptance(clerk_user_id, email or client.email),
            )
        except UpstreamUnavailable as exc:
            raise UpstreamUnavailable("Failed to accept invite") from exc

        logger.info("Invite %s accepted by %s for client %s", token, clerk_user_id, client.id)
        return client.id
