from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import ProjectStatus
from .model import Project


class ProjectRepository(Protocol):
    def list_projects(self, *, status: Optional[ProjectStatus] = None) -> Sequence[dict]:
        """Rows carry ``created_by_name`` and ``assigned_employees_count``."""

        raise NotImplementedError

    def get_by_id(self, project_id: int) -> Optional[Project]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Project]:
        raise NotImplementedError

    def create_project(
        self,
        *,
        name: str,
        description: Optional[str],
        status: ProjectStatus,
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def update_project(self, project_id: int, **fields: Any) -> bool:
        raise NotImplementedError

    # -------- Assignments --------
    def is_assigned(self, *, project_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def add_assignment(self, *, project_id: int, user_id: int, assigned_at: datetime) -> bool:
        """Insert the assignment; an existing one is left alone and False is returned."""

        raise NotImplementedError

    def remove_assignment(self, *, project_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def list_assigned_employees(self, project_id: int) -> Sequence[dict]:
        raise NotImplementedError

    def total_minutes_logged(self, project_id: int) -> int:
        raise NotImplementedError
