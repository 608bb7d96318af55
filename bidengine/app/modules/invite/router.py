"""Invite link endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bidengine.app.modules.clients.router import get_client_service
from bidengine.app.modules.clients.service import ClientService

from . import schemas
from .service import InviteService

router = APIRouter(prefix="/invite", tags=["invite"])


def get_invite_service(clients: ClientService = Depends(get_client_service)) -> InviteService:
    return InviteService(clients)


@router.get("/{token}", response_model=schemas.InviteStatus, response_model_exclude_none=True)
def validate_invite(token: str, service: InviteService = Depends(get_invite_service)):
    return service.validate(token)


@router.post("/{token}/accept", response_model=schemas.InviteAccepted)
def accept_invite(
    token: str,
    payload: schemas.InviteAccept,
    service: InviteService = Depends(get_invite_service),
):
    client_id = service.accept(token, payload.clerk_user_id, payload.email)
    return schemas.InviteAccepted(client_id=client_id)
