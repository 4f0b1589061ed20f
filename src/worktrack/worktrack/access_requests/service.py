from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.unit_of_work import UnitOfWork
from ..core.exceptions import NotFoundError, ValidationError
from ..core.viewer import Viewer
from ..projects.repository import ProjectRepository
from ..workflow.engine import ApprovalWorkflow, parse_status_filter
from .model import ProjectAccessRequest
from .repository import AccessRequestRepository

logger = logging.getLogger(__name__)


class AccessRequestService:
    """Use case: employees ask to join a project, admins approve (creating the assignment) or reject."""

    def __init__(self, requests: AccessRequestRepository, projects: ProjectRepository, uow: UnitOfWork):
        self._projects = projects
        self._workflow: ApprovalWorkflow[ProjectAccessRequest] = ApprovalWorkflow(
            requests,
            uow,
            subject="project",
            holds=self._is_assigned,
            on_approve=self._grant_assignment,
            pending_message="Access request already pending for this project",
        )

    def submit(self, viewer: Viewer, *, project_id: Any, now: datetime | None = None) -> ProjectAccessRequest:
        if project_id in (None, ""):
            raise ValidationError("Project ID is required")
        try:
            project_id = int(project_id)
        except (TypeError, ValueError):
            raise ValidationError("Project ID must be an integer")

        project = self._projects.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project not found")
        if not project.is_active:
            raise ValidationError("Cannot request access to inactive project")

        return self._workflow.submit(requester=viewer, subject_id=project_id, now=now)

    def list_requests(self, viewer: Viewer, *, status: Optional[str] = "pending") -> Sequence[dict]:
        return self._workflow.list_for(viewer, status=parse_status_filter(status))

    def approve(self, viewer: Viewer, request_id: int, *, now: datetime | None = None) -> ProjectAccessRequest:
        return self._workflow.approve(reviewer=viewer, request_id=request_id, now=now)

    def reject(
        self,
        viewer: Viewer,
        request_id: int,
        *,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> ProjectAccessRequest:
        return self._workflow.reject(reviewer=viewer, request_id=request_id, reason=reason, now=now)

    def _is_assigned(self, project_id: int, user_id: int, now: datetime) -> bool:
        return self._projects.is_assigned(project_id=project_id, user_id=user_id)

    def _grant_assignment(self, req: ProjectAccessRequest, now: datetime) -> None:
        created = self._projects.add_assignment(project_id=req.project_id, user_id=req.user_id, assigned_at=now)
        if not created:
            logger.info("User %s was already assigned to project %s", req.user_id, req.project_id)
