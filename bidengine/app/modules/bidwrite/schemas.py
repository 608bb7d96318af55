from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bidengine.app.common.models import Tender, TenderQuestion


class TenderListResponse(BaseModel):
    tenders: List[Tender]


class QuestionListResponse(BaseModel):
    questions: List[TenderQuestion]


class QuestionUpdate(BaseModel):
    answer_text: Optional[str] = None
    status: Optional[str] = None
    evaluation_text: Optional[str] = None
    final_evaluation: Optional[str] = None


class UpdateResult(BaseModel):
    success: bool = True


class ExtractedQuestion(BaseModel):
    question_number: Optional[str] = None
    question_text: str
    section: Optional[str] = None
    word_limit: Optional[str] = None
    weighting: Optional[str] = None
    method_statement_id: Optional[str] = None


class TenderUpload(BaseModel):
    """Tender document to split into questions; either text or a base64 file."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: Optional[str] = Field(None, alias="clientId")
    tender_id: Optional[str] = Field(None, alias="tenderId")
    tender_name: Optional[str] = Field(None, alias="tenderName")
    sector: Optional[str] = None
    file_name: Optional[str] = Field(None, alias="fileName")
    file_type: Optional[str] = Field(None, alias="fileType")
    file_base64: Optional[str] = Field(None, alias="fileBase64")
    extracted_text: Optional[str] = Field(None, alias="extractedText")


class CreatedQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", serialization_alias="_id")
    question_number: Optional[str] = None
    question_text: str


class UploadResult(BaseModel):
    success: bool = True
    tender_id: str
    tender_name: str
    questions_created: int
    questions: List[CreatedQuestion]


class TenderRun(BaseModel):
    tender_id: Optional[str] = None
    client_id: Optional[str] = None
    # question records to answer; the tender's questions when omitted
    questions: Optional[List[Dict[str, Any]]] = None


class QuestionOutcome(BaseModel):
    question_id: str
    question_number: Optional[str] = None
    success: bool
    score: Optional[float] = None
    loop_count: Optional[int] = None
    error: Optional[str] = None


class TenderRunResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    tender_id: str
    questions_processed: int = Field(0, alias="questionsProcessed")
    results: List[QuestionOutcome] = Field(default_factory=list)
    run_time_seconds: float = Field(0.0, alias="runTimeSeconds")
    evidence_count: int = Field(0, alias="evidenceCount")


class QuestionRun(BaseModel):
    question_id: Optional[str] = None
    client_id: Optional[str] = None


class QuestionRunResult(BaseModel):
    success: bool = True
    question_id: str
    score: float
    loop_count: int
    answer_length: int
