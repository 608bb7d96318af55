"""Parsing helpers for free-text answer evaluations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

_OVERALL_SCORE = re.compile(r"Overall Score:\s*(\d+\.?\d*)/(\d+)", re.IGNORECASE)
_CITATION = re.compile(r"\[([^|\]]+)\s*\|\s*(?:ID:\s*)?(\d+x\d+)\]")
_SENTENCE_END = re.compile(r"[.!?]")
_LOOSE_OVERALL_SCORE = re.compile(r"Overall Score:\s*(\d+\.?\d*)", re.IGNORECASE)
_LOOSE_SCORE = re.compile(r"Score:\s*(\d+\.?\d*)", re.IGNORECASE)

# gap sections of a scoring report, each running to the next heading
_MUST_FIX = re.compile(
    r"MUST FIX[:\s]*(.*?)(?=\U0001F7E0|\U0001F7E2|SHOULD FIX|COULD FIX|##|\Z)", re.IGNORECASE | re.DOTALL
)
_SHOULD_FIX = re.compile(r"SHOULD FIX[:\s]*(.*?)(?=\U0001F7E2|COULD FIX|##|\Z)", re.IGNORECASE | re.DOTALL)
_CRITICAL_GAPS = re.compile(r"CRITICAL GAPS?[:\s]*(.*?)(?=PRIORITY|##|\Z)", re.IGNORECASE | re.DOTALL)
_PRIORITY_ACTIONS = re.compile(r"PRIORITY ACTIONS?[:\s]*(.*?)(?=##|CONFIDENTIAL|\Z)", re.IGNORECASE | re.DOTALL)

_NEWLINES = re.compile(r"\n+")

GAP_LENGTH = 500

CLAIM_LENGTH = 100

SCORE_BANDS = (
    (9, "Excellent"),
    (8, "Strong"),
    (7, "Good"),
    (6, "Adequate"),
    (5, "Needs Work"),
)


@dataclass
class Score:
    value: float = 0.0
    out_of: int = 10


@dataclass
class Gaps:
    must_fix: str = ""
    should_fix: str = ""


@dataclass
class Citation:
    client: str
    evidence_id: str
    claim: str


def parse_score(evaluation: Optional[str]) -> Score:
    """Read ``Overall Score: X/Y`` from an evaluation; ``0/10`` when absent."""

    match = _OVERALL_SCORE.search(evaluation or "")
    if not match:
        return Score()
    return Score(value=float(match.group(1)), out_of=int(match.group(2)))


def score_label(score: float) -> str:
    for threshold, label in SCORE_BANDS:
        if score >= threshold:
            return label
    return "Weak"


def extract_citations(answer_text: Optional[str]) -> List[Citation]:
    """Find ``[Client | 123x456]`` citations in an answer.

    The claim is the sentence fragment leading up to the citation, cut to
    its last 100 characters. Each evidence id is reported once, at its
    first occurrence.
    """

    if not answer_text:
        return []

    citations: List[Citation] = []
    seen = set()
    for match in _CITATION.finditer(answer_text):
        evidence_id = match.group(2).strip()
        if evidence_id in seen:
            continue
        seen.add(evidence_id)
        claim = _SENTENCE_END.split(answer_text[: match.start()])[-1].strip()
        citations.append(
            Citation(
                client=match.group(1).strip(),
                evidence_id=evidence_id,
                claim=claim[-CLAIM_LENGTH:],
            )
        )
    return citations


def read_score(evaluation: Optional[str], default: float = 0.0) -> float:
    """Score from a fresh scoring report, where the ``/10`` suffix is optional."""

    text = evaluation or ""
    match = _LOOSE_OVERALL_SCORE.search(text) or _LOOSE_SCORE.search(text)
    if not match:
        return default
    return float(match.group(1))


def _section(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    if not match:
        return ""
    return _NEWLINES.sub(" ", match.group(1).strip())[:GAP_LENGTH]


def extract_gaps(evaluation: Optional[str]) -> Gaps:
    """Pull the must-fix and should-fix notes out of a scoring report.

    Reports without those headings fall back to their critical-gaps and
    priority-actions sections. A critical-gaps section that reports none
    is ignored.
    """

    text = evaluation or ""
    must_fix = _section(_MUST_FIX, text)
    should_fix = _section(_SHOULD_FIX, text)
    if not must_fix:
        critical = _section(_CRITICAL_GAPS, text)
        if "none" not in critical.lower():
            must_fix = critical
    if not should_fix:
        should_fix = _section(_PRIORITY_ACTIONS, text)
    return Gaps(must_fix=must_fix, should_fix=should_fix)
