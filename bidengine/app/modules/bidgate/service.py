"""BidGate: hand a tender document to the analysis workflow."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional

from bidengine.app.common.workflow import WorkflowClient
from bidengine.app.core.errors import ValidationError
from bidengine.app.utils.documents import classify_document, decode_text

from .schemas import TenderAnalysis

logger = logging.getLogger(__name__)


def build_analysis_job(
    *,
    client_id: str,
    tender_name: Optional[str],
    filename: str,
    content: bytes,
    text_limit: int,
) -> Dict[str, Any]:
    """Shape the webhook job for one uploaded file.

    Plain text is decoded and truncated here; binary formats travel as
    base64 and are extracted by the workflow engine. Exactly one of
    ``tenderText`` and ``fileBase64`` is present.
    """

    file_type = classify_document(filename)
    job: Dict[str, Any] = {
        "clientId": client_id,
        "tenderName": tender_name or filename,
        "fileName": filename,
        "fileType": file_type,
    }
    if file_type == "text":
        job["tenderText"] = decode_text(content)[:text_limit]
    else:
        job["fileBase64"] = base64.b64encode(content).decode("ascii")
    return {"body": job}


class BidGateService:
    def __init__(self, workflow: WorkflowClient, *, text_limit: int = 50_000) -> None:
        self._workflow = workflow
        self._text_limit = text_limit

    def analyse(
        self,
        *,
        client_id: Optional[str],
        tender_name: Optional[str],
        filename: Optional[str],
        content: Optional[bytes],
    ) -> TenderAnalysis:
        if content is None or not filename or not client_id:
            raise ValidationError("Missing file or clientId")

        job = build_analysis_job(
            client_id=client_id,
            tender_name=tender_name,
            filename=filename,
            content=content,
            text_limit=self._text_limit,
        )
        logger.info(
            "Submitting %s (%s, %s bytes) for analysis, client %s",
            filename,
            job["body"]["fileType"],
            len(content),
            client_id,
        )
        result = self._workflow.submit(job, failure_message="Analysis failed")

        return TenderAnalysis(
            success=bool(result.get("success", True)),
            analysis=result.get("analysis"),
            tender_name=result.get("tender_name") or tender_name or filename,
            evidence_counts=result.get("evidence_counts"),
            total_evidence=result.get("total_evidence"),
        )
