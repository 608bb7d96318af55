from typing import Any, Optional

from pydantic import BaseModel


class TenderAnalysis(BaseModel):
    """Relayed as-is from the workflow engine; only ``tender_name`` is filled in here."""

    success: bool = True
    analysis: Optional[Any] = None
    tender_name: Optional[str] = None
    evidence_counts: Optional[Any] = None
    total_evidence: Optional[Any] = None
