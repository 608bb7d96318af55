from typing import List, Optional

from pydantic import BaseModel

from bidengine.app.common.models import EvidenceRecord


class CategoryCount(BaseModel):
    category: str  # display label, e.g. "Social Value"
    count: int


class EvidenceCountsResponse(BaseModel):
    evidence: List[CategoryCount]


class CategorySummary(BaseModel):
    category: str  # code, e.g. "SOCIAL_VALUE"
    label: str
    count: int
    last_upload_date: Optional[str] = None
    last_upload_title: Optional[str] = None
    last_upload_narrative: Optional[str] = None


class EvidenceSummaryResponse(BaseModel):
    categories: List[CategorySummary]


class EvidenceRecordsResponse(BaseModel):
    records: List[EvidenceRecord]


class EvidenceDetailResponse(BaseModel):
    evidence: EvidenceRecord
