from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ProjectStatus


@dataclass(frozen=True)
class Project:
    """Domain entity: Project. Employees log time only against projects they are assigned to."""

    project_id: int
    name: str
    description: Optional[str]
    status: ProjectStatus
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE


@dataclass(frozen=True)
class ProjectAssignment:
    project_id: int
    user_id: int
    assigned_at: Optional[datetime] = None
