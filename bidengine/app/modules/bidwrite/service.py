from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List

from bidengine.app.common import field_mapper
from bidengine.app.common.models import AnswerCitation, Tender, TenderQuestion
from bidengine.app.common.record_store import RecordStoreClient, equals
from bidengine.app.core.errors import UpstreamUnavailable, ValidationError

from .evaluation import extract_citations, parse_score, score_label

logger = logging.getLogger(__name__)

TENDER_TYPE = "Tenders Data Type"
QUESTION_TYPE = "tender_questions"
TENDER_LIMIT = 50
QUESTION_LIMIT = 100


def with_score(question: TenderQuestion) -> TenderQuestion:
    """Attach the score (stored, else parsed), its label and the answer's evidence citations."""

    evaluation = question.final_evaluation or question.evaluation_text
    if question.score is None and evaluation:
        question.score = parse_score(evaluation).value
    if question.score is not None:
        question.score_label = score_label(question.score)
    question.citations = [AnswerCitation(**asdict(citation)) for citation in extract_citations(question.answer_text)]
    return question


class BidWriteService:
    def __init__(self, record_store: RecordStoreClient) -> None:
        self._store = record_store

    def tenders(self, client_id: str) -> List[Tender]:
        page = self._store.search(
            TENDER_TYPE,
            [equals("client", client_id)],
            sort_field=field_mapper.CREATED_DATE,
            descending=True,
            limit=TENDER_LIMIT,
        )
        return [field_mapper.map_tender(record) for record in page.results]

    def questions(self, tender_id: str) -> List[TenderQuestion]:
        page = self._store.search(QUESTION_TYPE, [equals("tender", tender_id)], limit=QUESTION_LIMIT)
        return [with_score(field_mapper.map_question(record)) for record in page.results]

    def update_question(self, question_id: str, changes: Dict[str, Any]) -> None:
        if not changes:
            raise ValidationError("No fields to update")
        try:
            self._store.update(QUESTION_TYPE, question_id, changes)
        except UpstreamUnavailable as exc:
            raise UpstreamUnavailable("Failed to update question") from exc
        logger.info("Updated question %s: %s", question_id, ", ".join(sorted(changes)))
