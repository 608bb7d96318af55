"""Answer drafting: question extraction, evidence context and the write-score-improve loop."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from bidengine.app.common.field_mapper import CREATED_DATE, MODIFIED_DATE
from bidengine.app.common.llm_client import LLMClient

from . import prompts
from .evaluation import extract_gaps, read_score
from .schemas import ExtractedQuestion

logger = logging.getLogger(__name__)

TARGET_SCORE = 8.5
MAX_IMPROVEMENT_LOOPS = 2

EXTRACTION_TEXT_LIMIT = 50_000
MIN_DOCUMENT_LENGTH = 50

EVIDENCE_RECORD_LIMIT = 40
EVIDENCE_CHAR_LIMIT = 15_000
NO_EVIDENCE = "No evidence available in BidVault."
_EVIDENCE_SKIP_FIELDS = {"_id", CREATED_DATE, MODIFIED_DATE, "Created By", "project_id", "embedding"}

HEADROOM_WORD_LIMIT = 750
EXCEED_SIGNALS = (
    "not limited to",
    "not be limited to",
    "should also consider",
    "may wish to include",
    "may also include",
    "bidders are encouraged to",
    "tenderers are encouraged to",
    "should also demonstrate",
    "over and above",
    "in addition to the above",
    "but not exclusively",
    "including but not restricted to",
)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_WORD_LIMIT = (
    re.compile(r"(?:maximum|max|word limit|word count)[:\s]*(\d[\d,]*)\s*words", re.IGNORECASE),
    re.compile(r"(\d[\d,]*)\s*words?\s*(?:maximum|max|limit)", re.IGNORECASE),
)

# per-call token budgets and sampling temperatures
EXTRACTION_MAX_TOKENS = 8000
WRITE_MAX_TOKENS = 4000
SCORE_MAX_TOKENS = 3000
WRITE_TEMPERATURE = 0.8
SCORE_TEMPERATURE = 0.4
IMPROVE_TEMPERATURE = 0.7


@dataclass
class AnswerDraft:
    answer: str
    evaluation: str
    score: float
    must_fix: str = ""
    should_fix: str = ""
    loop_count: int = 0


# ------------------------------------------------------------ question extraction
def parse_question_list(reply: str) -> List[ExtractedQuestion]:
    """Read the JSON array of questions from a model reply, fences and all."""

    cleaned = _CODE_FENCE.sub("", (reply or "").strip())
    try:
        data = json.loads(cleaned)
    except ValueError:
        logger.warning("Question extraction reply is not JSON: %s", cleaned[:200])
        return []
    if not isinstance(data, list):
        return []

    questions = []
    for item in data:
        if not isinstance(item, dict) or not item.get("question_text"):
            continue
        questions.append(
            ExtractedQuestion(
                question_number=_as_text(item.get("question_number")),
                question_text=str(item["question_text"]),
                section=_as_text(item.get("section")),
                word_limit=_as_text(item.get("word_limit")),
                weighting=_as_text(item.get("weighting")),
                method_statement_id=_as_text(item.get("method_statement_id")),
            )
        )
    return questions


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def extract_questions(llm: LLMClient, document_text: str) -> List[ExtractedQuestion]:
    if len(document_text.strip()) < MIN_DOCUMENT_LENGTH:
        return []
    prompt = prompts.QUESTION_EXTRACTION_PROMPT.format(document=document_text[:EXTRACTION_TEXT_LIMIT])
    reply = llm.complete(prompt, max_tokens=EXTRACTION_MAX_TOKENS)
    questions = parse_question_list(reply)
    logger.info("Extracted %s questions from %s characters", len(questions), len(document_text))
    return questions


# ------------------------------------------------------------ evidence context
def format_evidence(records: Iterable[Mapping[str, Any]]) -> str:
    """Render evidence records as the library block every prompt cites from."""

    blocks = []
    for record in list(records)[:EVIDENCE_RECORD_LIMIT]:
        category = record.get("category") or "OTHER"
        client_name = record.get("client_name") or record.get("end_client_name") or "Unknown Client"
        fields = [
            f"  {key.replace('_', ' ')}: {value}"
            for key, value in record.items()
            if key not in _EVIDENCE_SKIP_FIELDS and value and str(value).strip()
        ]
        blocks.append("\n".join([f"[{category}] {client_name} | ID: {record.get('_id')}", *fields]))

    if not blocks:
        return NO_EVIDENCE
    return "\n\n---\n\n".join(blocks)[:EVIDENCE_CHAR_LIMIT]


# ------------------------------------------------------------ writing
def word_limit_of(question_text: str) -> Optional[int]:
    for pattern in _WORD_LIMIT:
        match = pattern.search(question_text)
        if match:
            return int(match.group(1).replace(",", ""))
    return None


def exceed_instruction(question_text: str) -> str:
    """Extra guidance when the question invites answers beyond its listed requirements."""

    lowered = question_text.lower()
    word_limit = word_limit_of(question_text)
    if any(signal in lowered for signal in EXCEED_SIGNALS):
        limit_note = f" Word limit is {word_limit}: use up to 95% of it." if word_limit else ""
        return prompts.EXCEED_EXPLICIT.format(limit_note=limit_note)
    if word_limit and word_limit >= HEADROOM_WORD_LIMIT:
        return prompts.EXCEED_HEADROOM.format(word_limit=word_limit)
    return ""


def write_answer(llm: LLMClient, question_text: str, evidence: str, sector: Optional[str] = None) -> str:
    sector_context = prompts.SECTOR_CONTEXT.format(sector=sector) if sector else ""
    prompt = (
        f"{prompts.BIDWRITE_PROMPT}\n\n---{sector_context}{exceed_instruction(question_text)}\n"
        f"QUESTION:\n{question_text}\n\n"
        f"EVIDENCE LIBRARY (use only this evidence):\n{evidence}\n\n"
        "Write the response:"
    )
    return llm.complete(prompt, max_tokens=WRITE_MAX_TOKENS, temperature=WRITE_TEMPERATURE)


def score_answer(llm: LLMClient, question_text: str, answer: str, evidence: str, *, model: Optional[str] = None):
    prompt = (
        f"{prompts.BIDSCORE_PROMPT}\n\n---\n\n"
        f"EVIDENCE LIBRARY (use this to VERIFY citations):\n{evidence}\n\n---\n\n"
        f"QUESTION:\n{question_text}\n\n---\n\n"
        f"RESPONSE TO EVALUATE:\n{answer}\n\n---\n\n"
        "Evaluate now. Check EVERY citation against the evidence library above."
    )
    evaluation = llm.complete(prompt, max_tokens=SCORE_MAX_TOKENS, temperature=SCORE_TEMPERATURE, model=model)
    return read_score(evaluation), evaluation


def improve_answer(llm: LLMClient, question_text: str, answer: str, evaluation: str, evidence: str) -> str:
    prompt = (
        f"{prompts.IMPROVE_PROMPT}\n\n---\n\n"
        f"QUESTION:\n{question_text}\n\n"
        f"CURRENT RESPONSE:\n{answer}\n\n"
        f"EVALUATION FEEDBACK:\n{evaluation}\n\n"
        f"EVIDENCE LIBRARY (verify EVERY number exists here before citing):\n{evidence}\n\n"
        "Write the improved response:"
    )
    improved = llm.complete(prompt, max_tokens=WRITE_MAX_TOKENS, temperature=IMPROVE_TEMPERATURE)
    return improved or answer


def draft_answer(
    llm: LLMClient,
    question_text: str,
    evidence: str,
    *,
    sector: Optional[str] = None,
    scoring_model: Optional[str] = None,
    target_score: float = TARGET_SCORE,
    max_loops: int = MAX_IMPROVEMENT_LOOPS,
) -> AnswerDraft:
    """Write an answer, score it, and rewrite it until it reaches ``target_score``.

    At most ``max_loops`` rewrites are made; the last version is kept
    whatever its score.
    """

    answer = write_answer(llm, question_text, evidence, sector)
    score, evaluation = score_answer(llm, question_text, answer, evidence, model=scoring_model)
    logger.info("Initial score %.1f", score)

    loop_count = 0
    while score < target_score and loop_count < max_loops:
        loop_count += 1
        answer = improve_answer(llm, question_text, answer, evaluation, evidence)
        score, evaluation = score_answer(llm, question_text, answer, evidence, model=scoring_model)
        logger.info("Loop %s: score %.1f", loop_count, score)

    gaps = extract_gaps(evaluation)
    return AnswerDraft(
        answer=answer,
        evaluation=evaluation,
        score=score,
        must_fix=gaps.must_fix,
        should_fix=gaps.should_fix,
        loop_count=loop_count,
    )
