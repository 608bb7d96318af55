"""Typed record shapes exposed by the API.

These are the only shapes routes return for record-store entities; the raw
upstream field names stay inside :mod:`bidengine.app.common.field_mapper`.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """Base for record-store entities; identity serializes as ``_id``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", serialization_alias="_id")


class Client(Record):
    company_name: Optional[str] = None
    email: Optional[str] = None
    user_name: Optional[str] = None
    invite_token: Optional[str] = None
    invite_sent: bool = False
    invite_accepted: bool = False
    subscription_status: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    clerk_user_id: Optional[str] = None
    trial_end_date: Optional[str] = None
    subscription_end_date: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[str] = None


class Tender(Record):
    tender_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    question_count: int = 0


class AnswerCitation(BaseModel):
    client: str
    evidence_id: str
    claim: str


class TenderQuestion(Record):
    question_number: Optional[str] = None
    question_text: Optional[str] = None
    answer_text: Optional[str] = None
    evaluation_text: Optional[str] = None
    final_evaluation: Optional[str] = None
    section: Optional[str] = None
    status: Optional[str] = None
    tender_id: Optional[str] = None
    word_limit: Optional[str] = None
    weighting: Optional[str] = None
    processed_at: Optional[str] = None
    must_fix: Optional[str] = None
    should_fix: Optional[str] = None
    score: Optional[float] = None
    score_label: Optional[str] = None
    citations: List[AnswerCitation] = Field(default_factory=list)


class EvidenceRecord(Record):
    category: Optional[str] = None
    project_id: Optional[str] = None
    title: Optional[str] = None
    source_text: Optional[str] = None
    created_at: Optional[str] = None
    modified_at: Optional[str] = None


class Project(Record):
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    client_sector: Optional[str] = None
    contract_type: Optional[str] = None
    contract_value: Optional[float] = None
    contract_value_text: Optional[str] = None
    duration_months: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    our_role: Optional[str] = None
    scope_summary: Optional[str] = None
    relevance_tags: Optional[str] = None
    status: Optional[str] = None
    source_file: Optional[str] = None
    created_at: Optional[str] = None


class ProjectCaseStudy(Record):
    case_study_id: Optional[str] = None
    case_study_title: Optional[str] = None
    project_id: Optional[str] = None
    client_name: Optional[str] = None
    contract_name: Optional[str] = None
    contract_value: Optional[float] = None
    contract_duration: Optional[str] = None
    sector: Optional[str] = None
    challenge: Optional[str] = None
    solution: Optional[str] = None
    services_delivered: Optional[str] = None
    key_metrics: Optional[str] = None
    testimonial_text: Optional[str] = None
    testimonial_person: Optional[str] = None
    testimonial_role: Optional[str] = None
    created_at: Optional[str] = None
    modified_at: Optional[str] = None
    # copied from the parent project
    project_name: Optional[str] = None
    client_sector: Optional[str] = None
    contract_type: Optional[str] = None
