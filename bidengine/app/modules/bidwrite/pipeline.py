"""Tender question extraction and AI answer drafting backed by the record store."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from bidengine.app.common.llm_client import LLMClient
from bidengine.app.common.record_store import RecordStoreClient, equals
from bidengine.app.core.config import Settings
from bidengine.app.core.errors import BidEngineError, NotFoundError, UpstreamUnavailable, ValidationError
from bidengine.app.modules.evidence.service import EVIDENCE_TYPE
from bidengine.app.utils.documents import extract_text

from . import schemas
from .drafting import AnswerDraft, draft_answer, extract_questions, format_evidence
from .service import QUESTION_LIMIT, QUESTION_TYPE, TENDER_TYPE

logger = logging.getLogger(__name__)

DOCUMENT_PREVIEW_LENGTH = 300
UNTITLED_TENDER = "Untitled Tender"
DEFAULT_SECTION = "General"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_id(value: Any) -> Optional[str]:
    """A linked record arrives as an id or as the embedded record."""

    if isinstance(value, Mapping):
        value = value.get("_id") or value.get("id")
    return str(value) if value else None


class BidWritePipeline:
    def __init__(self, record_store: RecordStoreClient, llm: LLMClient, settings: Settings) -> None:
        self._store = record_store
        self._llm = llm
        self._settings = settings

    # ------------------------------------------------------------------ upload
    def upload(self, upload: schemas.TenderUpload) -> schemas.UploadResult:
        if not upload.client_id:
            raise ValidationError("Missing clientId")

        text = self._document_text(upload)
        if not text.strip():
            raise ValidationError("No document text provided")

        questions = extract_questions(self._llm, text)
        if not questions:
            raise ValidationError(
                "No questions found in document",
                extra={"documentTextLength": len(text), "documentPreview": text[:DOCUMENT_PREVIEW_LENGTH]},
            )

        tender_name = upload.tender_name or UNTITLED_TENDER
        tender_id = self._save_tender(upload, tender_name, len(questions))

        created: List[schemas.CreatedQuestion] = []
        for question in questions:
            body = {
                "question_number": question.question_number or "",
                "question_text": question.question_text,
                "section": question.section or DEFAULT_SECTION,
                "tender": tender_id,
                "client": upload.client_id,
                "status": "pending",
            }
            try:
                question_id = self._store.create(QUESTION_TYPE, body)
            except UpstreamUnavailable as exc:
                logger.warning("Could not create question %s: %s", question.question_number, exc.details or exc.message)
                continue
            created.append(
                schemas.CreatedQuestion(
                    id=question_id,
                    question_number=question.question_number,
                    question_text=question.question_text,
                )
            )

        logger.info("Tender %s: %s of %s questions created", tender_id, len(created), len(questions))
        return schemas.UploadResult(
            tender_id=tender_id,
            tender_name=tender_name,
            questions_created=len(created),
            questions=created,
        )

    def _document_text(self, upload: schemas.TenderUpload) -> str:
        if upload.extracted_text:
            return upload.extracted_text
        if not upload.file_base64:
            return ""
        try:
            content = base64.b64decode(upload.file_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError("Invalid fileBase64") from exc
        filename = upload.file_name or f"upload.{upload.file_type or 'pdf'}"
        return extract_text(filename, content)

    def _save_tender(self, upload: schemas.TenderUpload, tender_name: str, question_count: int) -> str:
        fields = {
            "source_file": upload.file_name or "",
            "status": "processing",
            "question_count": question_count,
            "sector": upload.sector or "",
        }
        if upload.tender_id:
            try:
                self._store.update(TENDER_TYPE, upload.tender_id, fields)
            except UpstreamUnavailable as exc:
                raise UpstreamUnavailable("Failed to update tender", details=exc.details or exc.message) from exc
            return upload.tender_id

        try:
            return self._store.create(TENDER_TYPE, {"tender_name": tender_name, "client": upload.client_id, **fields})
        except UpstreamUnavailable as exc:
            raise UpstreamUnavailable("Failed to create tender", details=exc.details or exc.message) from exc

    # ------------------------------------------------------------------ drafting
    def _evidence(self, client_id: str) -> List[Dict[str, Any]]:
        """Client evidence for prompts; an unreachable store means drafting without it."""

        try:
            page = self._store.search(
                EVIDENCE_TYPE,
                [equals("project_id", client_id)],
                limit=self._settings.evidence_fetch_limit,
            )
        except UpstreamUnavailable:
            logger.warning("Evidence fetch failed for client %s, drafting without evidence", client_id)
            return []
        return page.results

    def _draft(self, question_text: str, evidence: str, sector: Optional[str] = None) -> AnswerDraft:
        return draft_answer(
            self._llm,
            question_text,
            evidence,
            sector=sector,
            scoring_model=self._settings.llm_scoring_model,
        )

    def _save_draft(self, question_id: str, draft: AnswerDraft, source: str) -> None:
        self._store.update(
            QUESTION_TYPE,
            question_id,
            {
                "answer_text": draft.answer,
                "final_evaluation": draft.evaluation,
                "score": draft.score,
                "status": "draft",
                "must_fix": draft.must_fix,
                "should_fix": draft.should_fix,
                "loop_count": draft.loop_count,
                "processed_at": utc_now_iso(),
                "processing_source": source,
            },
        )

    def process_tender(self, run: schemas.TenderRun) -> schemas.TenderRunResult:
        if not run.tender_id or not run.client_id:
            raise ValidationError("Missing tender_id or client_id")

        started = time.monotonic()
        records = self._evidence(run.client_id)
        evidence = format_evidence(records)

        questions = run.questions
        if questions is None:
            try:
                questions = self._store.search(
                    QUESTION_TYPE, [equals("tender", run.tender_id)], limit=QUESTION_LIMIT
                ).results
            except UpstreamUnavailable as exc:
                raise UpstreamUnavailable("Failed to fetch questions", details=exc.details or exc.message) from exc

        result = schemas.TenderRunResult(tender_id=run.tender_id, evidence_count=len(records))
        if not questions:
            return result

        for index, question in enumerate(questions):
            if index and self._settings.llm_question_delay > 0:
                time.sleep(self._settings.llm_question_delay)
            result.results.append(self._process_one(question, evidence))

        elapsed = round(time.monotonic() - started, 1)
        try:
            self._store.update(
                TENDER_TYPE,
                run.tender_id,
                {"processed_at": utc_now_iso(), "processing_time_seconds": elapsed},
            )
        except UpstreamUnavailable:
            logger.warning("Could not stamp processing time on tender %s", run.tender_id)

        result.questions_processed = len(result.results)
        result.run_time_seconds = elapsed
        logger.info(
            "Tender %s: %s questions drafted in %.1fs",
            run.tender_id,
            sum(1 for outcome in result.results if outcome.success),
            elapsed,
        )
        return result

    def _process_one(self, question: Mapping[str, Any], evidence: str) -> schemas.QuestionOutcome:
        question_id = str(question.get("_id") or "")
        number = question.get("question_number")
        number = str(number) if number not in (None, "") else None
        try:
            question_text = question.get("question_text")
            if not question_id or not question_text:
                raise ValidationError("Question has no text")
            draft = self._draft(str(question_text), evidence)
            self._save_draft(question_id, draft, "tender")
        except BidEngineError as exc:
            logger.error("Question %s failed: %s", question_id or number, exc.message)
            return schemas.QuestionOutcome(question_id=question_id, question_number=number, success=False, error=exc.message)
        return schemas.QuestionOutcome(
            question_id=question_id,
            question_number=number,
            success=True,
            score=draft.score,
            loop_count=draft.loop_count,
        )

    def process_question(self, run: schemas.QuestionRun) -> schemas.QuestionRunResult:
        if not run.question_id or not run.client_id:
            raise ValidationError("Missing params")

        question = self._store.get(QUESTION_TYPE, run.question_id)
        if question is None or not question.get("question_text"):
            raise NotFoundError("Question not found")

        sector = self._tender_sector(_record_id(question.get("tender")))
        evidence = format_evidence(self._evidence(run.client_id))
        draft = self._draft(str(question["question_text"]), evidence, sector)

        try:
            self._save_draft(run.question_id, draft, "question")
        except UpstreamUnavailable as exc:
            raise UpstreamUnavailable(
                "Failed to save",
                details=exc.details or exc.message,
                extra={"answer_generated": True, "answer_length": len(draft.answer), "score": draft.score},
            ) from exc

        logger.info("Question %s drafted: score %.1f after %s loops", run.question_id, draft.score, draft.loop_count)
        return schemas.QuestionRunResult(
            question_id=run.question_id,
            score=draft.score,
            loop_count=draft.loop_count,
            answer_length=len(draft.answer),
        )

    def _tender_sector(self, tender_id: Optional[str]) -> Optional[str]:
        if not tender_id:
            return None
        try:
            tender = self._store.get(TENDER_TYPE, tender_id)
        except UpstreamUnavailable:
            logger.info("Could not read tender %s for its sector", tender_id)
            return None
        return (tender or {}).get("sector") or None
