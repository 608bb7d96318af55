from typing import List

from pydantic import BaseModel

from bidengine.app.common.models import Project, ProjectCaseStudy


class ProjectListResponse(BaseModel):
    projects: List[Project]


class CaseStudyListResponse(BaseModel):
    case_studies: List[ProjectCaseStudy]
