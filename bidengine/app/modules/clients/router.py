"""Admin endpoints for client records."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bidengine.app.common.record_store import RecordStoreClient
from bidengine.app.core import dependencies
from bidengine.app.core.errors import UpstreamUnavailable

from . import schemas
from .service import ClientService

router = APIRouter(prefix="/clients", tags=["clients"])


def get_client_service(
    record_store: RecordStoreClient = Depends(dependencies.get_record_store),
) -> ClientService:
    return ClientService(record_store)


@router.get("", response_model=schemas.ClientListResponse)
def list_clients(service: ClientService = Depends(get_client_service)):
    try:
        clients = service.list_clients()
    except UpstreamUnavailable as exc:
        raise UpstreamUnavailable("Failed to fetch clients") from exc
    return schemas.ClientListResponse(clients=clients)


@router.post("", response_model=schemas.ClientResponse, response_model_exclude_none=True)
def create_client(
    payload: schemas.ClientCreate,
    service: ClientService = Depends(get_client_service),
):
    try:
        client, existed = service.create_invited_client(payload.company_name, payload.email)
    except UpstreamUnavailable as exc:
        raise UpstreamUnavailable("Failed to create client") from exc
    return schemas.ClientResponse(client=client, existed=True if existed else None)


@router.get("/{client_id}", response_model=schemas.ClientResponse, response_model_exclude_none=True)
def get_client(client_id: str, service: ClientService = Depends(get_client_service)):
    return schemas.ClientResponse(client=service.get_client(client_id))
