"""BidVault: project history and evidence extraction."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from bidengine.app.common import field_mapper
from bidengine.app.common.models import Project, ProjectCaseStudy
from bidengine.app.common.record_store import Constraint, RecordStoreClient, equals
from bidengine.app.common.workflow import WorkflowClient
from bidengine.app.core.errors import ValidationError
from bidengine.app.utils.documents import extract_text

logger = logging.getLogger(__name__)

PROJECT_TYPE = "Projects"
CASE_STUDY_TYPE = "Project_Case_Study"
PROJECT_LIMIT = 100


class BidVaultService:
    def __init__(self, record_store: RecordStoreClient) -> None:
        self._store = record_store

    def projects(self, client_id: str) -> List[Project]:
        page = self._store.search(
            PROJECT_TYPE,
            [equals("client", client_id)],
            sort_field=field_mapper.CREATED_DATE,
            descending=True,
            limit=PROJECT_LIMIT,
        )
        return [field_mapper.map_project(record) for record in page.results]

    def case_studies(self, client_id: str) -> List[ProjectCaseStudy]:
        """Case studies attached to any of the client's projects."""

        projects = {project.id: project for project in self.projects(client_id)}
        if not projects:
            return []

        records = self._store.search_all(
            CASE_STUDY_TYPE,
            [Constraint("project_id", list(projects), "in")],
            sort_field=field_mapper.CREATED_DATE,
            descending=True,
        )
        logger.info("Found %s case studies across %s projects for client %s", len(records), len(projects), client_id)
        return [
            field_mapper.map_case_study(record, projects.get(str(record.get("project_id"))))
            for record in records
        ]


def extract_evidence(
    workflow: WorkflowClient,
    *,
    client_id: str,
    filename: str,
    content: bytes,
) -> Dict[str, Any]:
    """Pull text out of an uploaded document and send it for evidence extraction."""

    if not client_id:
        raise ValidationError("No clientId provided")

    text = extract_text(filename, content)
    if not text or not text.strip():
        raise ValidationError("Could not extract text from file")

    result = workflow.submit(
        {"document_text": text, "document_name": filename, "client_id": client_id},
        failure_message="Extraction failed",
    )
    return {"success": True, **result}
