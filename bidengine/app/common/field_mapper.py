"""Translation between record-store field names and the API's record shapes.

The record store is schema-free: flags arrive as ``"yes"``/``"no"`` or as real
booleans, timestamps live under space-separated keys such as
``"Created Date"``, and a few fields changed spelling over time. All of that
is absorbed here so routes only ever see :mod:`bidengine.app.common.models`.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional

from bidengine.app.common import models

CREATED_DATE = "Created Date"
MODIFIED_DATE = "Modified Date"

_INVITE_TOKEN_STRIP = re.compile(r"[^a-z0-9]")


def invite_token_for(company_name: str) -> str:
    """Derive the invite slug: lowercase, everything but ``[a-z0-9]`` removed."""

    return _INVITE_TOKEN_STRIP.sub("", company_name.lower())


def as_bool(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() == "yes"
    return False


def yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


# ---------------------------------------------------------------------- reads
def map_client(record: Mapping[str, Any]) -> models.Client:
    return models.Client(
        id=str(record["_id"]),
        company_name=_text(_first(record, "client_name", "Client_name")),
        email=_text(_first(record, "email", "Email")),
        user_name=_text(record.get("user_name")),
        invite_token=_text(record.get("invite_token")),
        invite_sent=as_bool(record.get("invite_sent")),
        invite_accepted=as_bool(record.get("invite_accepted")),
        subscription_status=_text(record.get("subscription_status")),
        stripe_customer_id=_text(record.get("stripe_customer_id")),
        clerk_user_id=_text(_first(record, "Clerk_user_id", "clerk_user_id")),
        trial_end_date=_text(record.get("trial_end_date")),
        subscription_end_date=_text(record.get("subscription_end_date")),
        is_admin=as_bool(record.get("is_admin")),
        created_at=_text(record.get(CREATED_DATE)),
    )


def map_tender(record: Mapping[str, Any]) -> models.Tender:
    count = _number(record.get("question_count"))
    return models.Tender(
        id=str(record["_id"]),
        tender_name=_text(record.get("tender_name")),
        client_id=_text(_first(record, "client", "client_id")),
        client_name=_text(record.get("client_name")),
        status=_text(record.get("status")),
        created_at=_text(_first(record, CREATED_DATE, "Created_Date")),
        question_count=int(count) if count else 0,
    )


def map_question(record: Mapping[str, Any]) -> models.TenderQuestion:
    return models.TenderQuestion(
        id=str(record["_id"]),
        question_number=_text(record.get("question_number")),
        question_text=_text(record.get("question_text")),
        answer_text=_text(record.get("answer_text")),
        evaluation_text=_text(record.get("evaluation_text")),
        final_evaluation=_text(record.get("final_evaluation")),
        section=_text(record.get("section")),
        status=_text(record.get("status")),
        tender_id=_text(record.get("tender")),
        word_limit=_text(record.get("word_limit")),
        weighting=_text(record.get("weighting")),
        processed_at=_text(record.get("processed_at")),
        score=_number(record.get("score")),
        must_fix=_text(record.get("must_fix")),
        should_fix=_text(record.get("should_fix")),
    )


def map_evidence(record: Mapping[str, Any]) -> models.EvidenceRecord:
    return models.EvidenceRecord(
        id=str(record["_id"]),
        category=_text(record.get("category")),
        project_id=_text(record.get("project_id")),
        title=_text(record.get("title")),
        source_text=_text(record.get("source_text")),
        created_at=_text(record.get(CREATED_DATE)),
        modified_at=_text(record.get(MODIFIED_DATE)),
    )


def map_project(record: Mapping[str, Any]) -> models.Project:
    return models.Project(
        id=str(record["_id"]),
        project_id=_text(record.get("project_id")),
        project_name=_text(record.get("project_name")),
        client_id=_text(_first(record, "client", "client_id")),
        client_name=_text(record.get("client_name")),
        client_sector=_text(record.get("client_sector")),
        contract_type=_text(record.get("contract_type")),
        contract_value=_number(record.get("contract_value")),
        contract_value_text=_text(record.get("contract_value_text")),
        duration_months=_number(record.get("duration_months")),
        start_date=_text(record.get("start_date")),
        end_date=_text(record.get("end_date")),
        our_role=_text(record.get("our_role")),
        scope_summary=_text(record.get("scope_summary")),
        relevance_tags=_text(record.get("relevance_tags")),
        status=_text(record.get("status")),
        source_file=_text(record.get("source_file")),
        created_at=_text(_first(record, CREATED_DATE, "Created_Date")),
    )


def map_case_study(
    record: Mapping[str, Any],
    project: Optional[models.Project] = None,
) -> models.ProjectCaseStudy:
    """Map a case study, copying enrichment fields from its parent project."""

    return models.ProjectCaseStudy(
        id=str(record["_id"]),
        case_study_id=_text(record.get("case_study_id")),
        case_study_title=_text(record.get("case_study_title")),
        project_id=_text(record.get("project_id")),
        client_name=_text(record.get("client_name")),
        contract_name=_text(record.get("contract_name")),
        contract_value=_number(record.get("contract_value")),
        contract_duration=_text(record.get("contract_duration")),
        sector=_text(record.get("sector")),
        challenge=_text(record.get("challenge")),
        solution=_text(record.get("solution")),
        services_delivered=_text(record.get("services_delivered")),
        key_metrics=_text(record.get("key_metrics")),
        testimonial_text=_text(record.get("testimonial_text")),
        testimonial_person=_text(record.get("testimonial_person")),
        testimonial_role=_text(record.get("testimonial_role")),
        created_at=_text(_first(record, CREATED_DATE, "Created_Date")),
        modified_at=_text(_first(record, MODIFIED_DATE, "Modified_Date")),
        project_name=project.project_name if project else None,
        client_sector=project.client_sector if project else None,
        contract_type=project.contract_type if project else None,
    )


# --------------------------------------------------------------------- writes
def new_invited_client(company_name: str, email: Optional[str], invite_token: str) -> Dict[str, Any]:
    return {
        "client_name": company_name,
        "email": email or None,
        "invite_token": invite_token,
        "invite_sent": yes_no(False),
        "invite_accepted": yes_no(False),
        "subscription_status": "pending",
    }


def new_signup_client(
    clerk_user_id: str,
    company_name: str,
    *,
    client_number: int,
    email: Optional[str] = None,
    user_name: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "Clerk_user_id": clerk_user_id,
        "client_id": client_number,
        "client_name": company_name,
        "user_name": user_name or "",
        "email": email or "",
    }


def new_billing_client(
    clerk_user_id: str,
    *,
    client_number: int,
    email: str,
    name: str,
    stripe_customer_id: str,
    subscription_status: str,
    trial_end_date: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "Clerk_user_id": clerk_user_id,
        "client_id": client_number,
        "client_name": name,
        "email": email,
        "stripe_customer_id": stripe_customer_id,
        "subscription_status": subscription_status,
    }
    if trial_end_date:
        body["trial_end_date"] = trial_end_date
    return body


def invite_acceptance(clerk_user_id: str, email: Optional[str]) -> Dict[str, Any]:
    # subscription_status is overwritten unconditionally on acceptance
    body: Dict[str, Any] = {
        "invite_accepted": True,
        "Clerk_user_id": clerk_user_id,
        "subscription_status": "active",
    }
    if email:
        body["email"] = email
    return body


def subscription_update(
    subscription_status: str,
    *,
    subscription_id: Optional[str] = None,
    trial_end_date: Optional[str] = None,
    current_period_end: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"subscription_status": subscription_status}
    if subscription_id:
        body["stripe_subscription_id"] = subscription_id
    if trial_end_date:
        body["trial_end_date"] = trial_end_date
    if current_period_end:
        body["subscription_end_date"] = current_period_end
    return body
