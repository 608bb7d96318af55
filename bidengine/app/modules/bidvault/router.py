from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from bidengine.app.common.record_store import RecordStoreClient
from bidengine.app.common.workflow import WorkflowClient
from bidengine.app.core import dependencies
from bidengine.app.core.errors import ValidationError

from . import schemas
from .service import BidVaultService, extract_evidence

router = APIRouter(tags=["bidvault"])


def get_bidvault_service(
    record_store: RecordStoreClient = Depends(dependencies.get_record_store),
) -> BidVaultService:
    return BidVaultService(record_store)


@router.get("/clients/{client_id}/projects", response_model=schemas.ProjectListResponse)
def client_projects(client_id: str, service: BidVaultService = Depends(get_bidvault_service)):
    return schemas.ProjectListResponse(projects=service.projects(client_id))


@router.get("/clients/{client_id}/case-studies", response_model=schemas.CaseStudyListResponse)
def client_case_studies(client_id: str, service: BidVaultService = Depends(get_bidvault_service)):
    return schemas.CaseStudyListResponse(case_studies=service.case_studies(client_id))


@router.post("/bidvault/extract")
async def extract_document(
    file: Optional[UploadFile] = File(None),
    client_id: Optional[str] = Form(None, alias="clientId"),
    workflow: WorkflowClient = Depends(dependencies.get_bidvault_workflow),
):
    if file is None:
        raise ValidationError("No file provided")
    content = await file.read()
    return await run_in_threadpool(
        lambda: extract_evidence(
            workflow,
            client_id=client_id,
            filename=file.filename or "",
            content=content,
        )
    )
