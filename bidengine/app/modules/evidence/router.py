"""Evidence library endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from bidengine.app.common.record_store import RecordStoreClient
from bidengine.app.core import dependencies
from bidengine.app.core.config import Settings, get_settings

from . import schemas
from .service import EvidenceService

router = APIRouter(tags=["evidence"])


def get_evidence_service(
    record_store: RecordStoreClient = Depends(dependencies.get_record_store),
    settings: Settings = Depends(get_settings),
) -> EvidenceService:
    return EvidenceService(record_store, fetch_limit=settings.evidence_fetch_limit)


@router.get("/clients/{client_id}/evidence", response_model=schemas.EvidenceCountsResponse)
def client_evidence(client_id: str, service: EvidenceService = Depends(get_evidence_service)):
    return schemas.EvidenceCountsResponse(evidence=service.category_counts(client_id))


@router.get("/clients/{client_id}/evidence/summary", response_model=schemas.EvidenceSummaryResponse)
def client_evidence_summary(client_id: str, service: EvidenceService = Depends(get_evidence_service)):
    return schemas.EvidenceSummaryResponse(categories=service.category_summary(client_id))


@router.get("/clients/{client_id}/evidence/records", response_model=schemas.EvidenceRecordsResponse)
def client_evidence_records(
    client_id: str,
    category: Optional[str] = Query(None, description="Category code, e.g. SAFETY"),
    service: EvidenceService = Depends(get_evidence_service),
):
    return schemas.EvidenceRecordsResponse(records=service.records(client_id, category))


@router.get("/evidence/{evidence_id}", response_model=schemas.EvidenceDetailResponse)
def evidence_detail(evidence_id: str, service: EvidenceService = Depends(get_evidence_service)):
    return schemas.EvidenceDetailResponse(evidence=service.get(evidence_id))
