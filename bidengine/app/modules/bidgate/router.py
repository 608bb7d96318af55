from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from bidengine.app.common.workflow import WorkflowClient
from bidengine.app.core import dependencies
from bidengine.app.core.config import Settings, get_settings

from .schemas import TenderAnalysis
from .service import BidGateService

router = APIRouter(prefix="/bidgate", tags=["bidgate"])


@router.post("/analyse", response_model=TenderAnalysis)
async def analyse_tender(
    file: Optional[UploadFile] = File(None),
    client_id: Optional[str] = Form(None, alias="clientId"),
    tender_name: Optional[str] = Form(None, alias="tenderName"),
    workflow: WorkflowClient = Depends(dependencies.get_bidgate_workflow),
    settings: Settings = Depends(get_settings),
):
    content = await file.read() if file is not None else None
    service = BidGateService(workflow, text_limit=settings.analysis_text_limit)
    return await run_in_threadpool(
        lambda: service.analyse(
            client_id=client_id,
            tender_name=tender_name,
            filename=file.filename if file is not None else None,
            content=content,
        )
    )
