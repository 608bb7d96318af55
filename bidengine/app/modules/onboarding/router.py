"""Account setup endpoint used right after sign-up."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bidengine.app.modules.clients.router import get_client_service
from bidengine.app.modules.clients.service import ClientService

from . import schemas
from .service import OnboardingService

router = APIRouter(prefix="/client", tags=["onboarding"])


def get_onboarding_service(clients: ClientService = Depends(get_client_service)) -> OnboardingService:
    return OnboardingService(clients)


@router.post("/create", response_model=schemas.SignupClientCreated)
def create_signup_client(
    payload: schemas.SignupClientCreate,
    service: OnboardingService = Depends(get_onboarding_service),
):
    client_id = service.ensure_client(
        payload.clerk_user_id,
        payload.company_name,
        email=payload.email,
        user_name=payload.user_name,
    )
    return schemas.SignupClientCreated(client_id=client_id)
