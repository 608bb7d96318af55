from fastapi import APIRouter, Depends

from bidengine.app.common.llm_client import LLMClient
from bidengine.app.common.record_store import RecordStoreClient
from bidengine.app.core import dependencies
from bidengine.app.core.config import Settings, get_settings

from . import schemas
from .pipeline import BidWritePipeline
from .service import BidWriteService

router = APIRouter(tags=["bidwrite"])


def get_bidwrite_service(
    record_store: RecordStoreClient = Depends(dependencies.get_record_store),
) -> BidWriteService:
    return BidWriteService(record_store)


def get_bidwrite_pipeline(
    record_store: RecordStoreClient = Depends(dependencies.get_record_store),
    llm: LLMClient = Depends(dependencies.get_llm_client),
    settings: Settings = Depends(get_settings),
) -> BidWritePipeline:
    return BidWritePipeline(record_store, llm, settings)


@router.get("/clients/{client_id}/tenders", response_model=schemas.TenderListResponse)
def client_tenders(client_id: str, service: BidWriteService = Depends(get_bidwrite_service)):
    return schemas.TenderListResponse(tenders=service.tenders(client_id))


@router.get("/tenders/{tender_id}/questions", response_model=schemas.QuestionListResponse)
def tender_questions(tender_id: str, service: BidWriteService = Depends(get_bidwrite_service)):
    return schemas.QuestionListResponse(questions=service.questions(tender_id))


@router.patch("/questions/{question_id}", response_model=schemas.UpdateResult)
def update_question(
    question_id: str,
    payload: schemas.QuestionUpdate,
    service: BidWriteService = Depends(get_bidwrite_service),
):
    service.update_question(question_id, payload.model_dump(exclude_unset=True))
    return schemas.UpdateResult()


@router.post("/bidwrite/upload", response_model=schemas.UploadResult)
def upload_tender(payload: schemas.TenderUpload, pipeline: BidWritePipeline = Depends(get_bidwrite_pipeline)):
    return pipeline.upload(payload)


@router.post("/bidwrite/process-tender", response_model=schemas.TenderRunResult)
def process_tender(payload: schemas.TenderRun, pipeline: BidWritePipeline = Depends(get_bidwrite_pipeline)):
    return pipeline.process_tender(payload)


@router.post("/bidwrite/process-question", response_model=schemas.QuestionRunResult)
def process_question(payload: schemas.QuestionRun, pipeline: BidWritePipeline = Depends(get_bidwrite_pipeline)):
    return pipeline.process_question(payload)
