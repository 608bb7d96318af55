"""Evidence counting and lookup for a client's evidence library."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bidengine.app.common import field_mapper
from bidengine.app.common.models import EvidenceRecord
from bidengine.app.common.record_store import RecordStoreClient, equals
from bidengine.app.core.errors import NotFoundError

from .schemas import CategoryCount, CategorySummary

logger = logging.getLogger(__name__)

EVIDENCE_TYPE = "Project_Evidence"

# Closed, ordered enumeration: (stored code, display label). The order is the
# tie-break for equal counts.
EVIDENCE_CATEGORIES = (
    ("SAFETY", "Safety"),
    ("FINANCIAL", "Financials"),
    ("SOCIAL_VALUE", "Social Value"),
    ("QUALITY", "Quality"),
    ("INNOVATION", "Innovation"),
    ("SUSTAINABILITY", "Sustainability"),
    ("CLIENT_FEEDBACK", "Client Feedback"),
    ("SUPPLY_CHAIN", "Supply Chain"),
    ("GOVERNANCE", "Governance"),
    ("INCIDENT", "Incidents"),
    ("PROGRAMME", "Programme"),
    ("RESOURCE", "Resources"),
    ("KPI", "KPIs"),
    ("CASE_STUDY", "Case Studies"),
    ("MOBILISATION", "Mobilisation"),
    ("OTHER", "Other"),
)

_CATEGORY_CODES = frozenset(code for code, _ in EVIDENCE_CATEGORIES)


def _known(code: Any) -> bool:
    return isinstance(code, str) and code in _CATEGORY_CODES


def count_by_category(records: Iterable[Mapping[str, Any]]) -> List[CategoryCount]:
    """Tally records into the known categories, largest first.

    Unknown categories are dropped and empty categories are omitted. Equal
    counts keep the enumeration order.
    """

    tally = Counter(code for code in (record.get("category") for record in records) if _known(code))
    counts = [
        CategoryCount(category=label, count=tally[code])
        for code, label in EVIDENCE_CATEGORIES
        if tally[code] > 0
    ]
    counts.sort(key=lambda item: item.count, reverse=True)
    return counts


def summarize_by_category(records: List[Mapping[str, Any]]) -> List[CategorySummary]:
    """Per-category count plus the latest upload; ``records`` newest first."""

    latest: Dict[str, Mapping[str, Any]] = {}
    tally: Counter = Counter()
    for record in records:
        code = record.get("category")
        if not _known(code):
            continue
        tally[code] += 1
        latest.setdefault(code, record)

    summaries = []
    for code, label in EVIDENCE_CATEGORIES:
        newest = latest.get(code)
        summary = CategorySummary(category=code, label=label, count=tally[code])
        if newest is not None:
            mapped = field_mapper.map_evidence(newest)
            summary.last_upload_date = mapped.modified_at or mapped.created_at
            summary.last_upload_title = mapped.title
            summary.last_upload_narrative = mapped.source_text
        summaries.append(summary)
    return summaries


class EvidenceService:
    def __init__(self, record_store: RecordStoreClient, *, fetch_limit: int = 500) -> None:
        self._store = record_store
        self._fetch_limit = fetch_limit

    def category_counts(self, client_id: str) -> List[CategoryCount]:
        page = self._store.search(
            EVIDENCE_TYPE,
            [equals("project_id", client_id)],
            limit=self._fetch_limit,
        )
        return count_by_category(page.results)

    def category_summary(self, client_id: str) -> List[CategorySummary]:
        records = self._store.search_all(
            EVIDENCE_TYPE,
            [equals("project_id", client_id)],
            sort_field=field_mapper.MODIFIED_DATE,
            descending=True,
        )
        logger.info("Summarising %s evidence records for client %s", len(records), client_id)
        return summarize_by_category(records)

    def records(self, client_id: str, category: Optional[str] = None) -> List[EvidenceRecord]:
        constraints = [equals("project_id", client_id)]
        if category:
            constraints.append(equals("category", category))
        records = self._store.search_all(
            EVIDENCE_TYPE,
            constraints,
            sort_field=field_mapper.MODIFIED_DATE,
            descending=True,
        )
        return [field_mapper.map_evidence(record) for record in records]

    def get(self, evidence_id: str) -> EvidenceRecord:
        record = self._store.get(EVIDENCE_TYPE, evidence_id)
        if record is None:
            raise NotFoundError("Evidence not found")
        return field_mapper.map_evidence(record)
