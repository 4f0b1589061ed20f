from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class RequestStatus(str, Enum):
    """Approval workflow states (access requests, report edit requests)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TimeEntryType(str, Enum):
    TIMER = "timer"
    MANUAL = "manual"


class LocationStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
