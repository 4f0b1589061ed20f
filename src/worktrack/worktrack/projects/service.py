from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..access_requests.repository import AccessRequestRepository
from ..common.datetime_utils import minutes_to_hours
from ..common.validators import require_max_length
from ..core.constants import MAX_NAME_LENGTH
from ..core.enums import ProjectStatus, RequestStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.viewer import Viewer
from .model import Project
from .repository import ProjectRepository

logger = logging.getLogger(__name__)

_STATUS_MESSAGE = "Status must be either active or inactive"


def _parse_status(value: Any) -> ProjectStatus:
    try:
        return ProjectStatus(value)
    except ValueError:
        raise ValidationError(_STATUS_MESSAGE)


class ProjectService:
    """Use case: browse projects, manage them (admin) and their assignees."""

    def __init__(self, projects: ProjectRepository, access_requests: AccessRequestRepository):
        self._projects = projects
        self._access_requests = access_requests

    def list_projects(self, viewer: Viewer, *, status: Optional[str] = "active") -> Sequence[dict]:
        if not viewer.is_admin:
            return self._projects.list_projects(status=ProjectStatus.ACTIVE)
        if status in (None, "", "all"):
            return self._projects.list_projects(status=None)
        return self._projects.list_projects(status=_parse_status(status))

    def get_project(self, viewer: Viewer, project_id: int) -> dict:
        project = self.require_project(project_id)
        if not viewer.is_admin and not self._projects.is_assigned(
            project_id=project.project_id, user_id=viewer.user_id
        ):
            raise AuthorizationError("Access denied. You are not assigned to this project.")

        detail: dict[str, Any] = {
            "project_id": project.project_id,
            "name": project.name,
            "description": project.description,
            "status": project.status.value,
            "created_by": project.created_by,
            "created_at": project.created_at,
            "updated_at": project.updated_at,
            "assigned_employees": list(self._projects.list_assigned_employees(project.project_id)),
            "total_hours_logged": minutes_to_hours(self._projects.total_minutes_logged(project.project_id)),
        }
        if viewer.is_admin:
            detail["pending_requests"] = list(
                self._access_requests.list_rows(status=RequestStatus.PENDING, project_id=project.project_id)
            )
        return detail

    def create_project(
        self,
        viewer: Viewer,
        *,
        name: Any,
        description: Optional[str] = None,
        status: Any = ProjectStatus.ACTIVE.value,
    ) -> Project:
        viewer.require_admin()
        name = self._validate_name(name)
        status = _parse_status(status)
        if self._projects.get_by_name(name):
            raise ConflictError("Project name already exists")

        project_id = self._projects.create_project(
            name=name,
            description=description,
            status=status,
            created_by=viewer.user_id,
        )
        logger.info("Admin %s created project %s", viewer.user_id, project_id)
        return self._projects.get_by_id(project_id)

    def update_project(self, viewer: Viewer, project_id: int, **changes: Any) -> Project:
        """Partial update: only keys present in ``changes`` are touched (description may be set to None)."""
        viewer.require_admin()
        project = self.require_project(project_id)

        fields: dict[str, Any] = {}
        if "name" in changes:
            name = self._validate_name(changes["name"], message="Project name cannot be empty")
            existing = self._projects.get_by_name(name)
            if existing and existing.project_id != project.project_id:
                raise ConflictError("Project name already exists")
            fields["name"] = name
        if "description" in changes:
            fields["description"] = changes["description"]
        if "status" in changes:
            fields["status"] = _parse_status(changes["status"])

        if not fields:
            raise ValidationError("No fields to update")

        self._projects.update_project(project.project_id, **fields)
        return self._projects.get_by_id(project.project_id)

    def remove_employee(self, viewer: Viewer, project_id: int, user_id: int) -> None:
        viewer.require_admin()
        if not self._projects.remove_assignment(project_id=int(project_id), user_id=int(user_id)):
            raise NotFoundError("Assignment not found")
        logger.info("Admin %s removed user %s from project %s", viewer.user_id, user_id, project_id)

    def require_project(self, project_id: int) -> Project:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        return project

    @staticmethod
    def _validate_name(name: Any, *, message: str = "Project name is required") -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(message)
        require_max_length(name, "Project name", MAX_NAME_LENGTH)
        return name.strip()
