"""Generic pending -> approved | rejected state machine.

Project access requests and report edit requests share this engine; they differ
only in what "already holds the resource" means and in the side effect that runs
when a request is approved.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Generic, Optional, Protocol, Sequence, TypeVar

from ..common.datetime_utils import now_local
from ..common.unit_of_work import UnitOfWork
from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import RequestStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.viewer import Viewer

logger = logging.getLogger(__name__)


class ApprovalRecord(Protocol):
    request_id: int
    user_id: int
    status: RequestStatus


R = TypeVar("R", bound=ApprovalRecord)

HoldsPredicate = Callable[[int, int, datetime], bool]
ApproveHook = Callable[[Any, datetime], None]


class ApprovalStore(Protocol):
    def get(self, request_id: int) -> Optional[Any]:
        raise NotImplementedError

    def has_pending(self, *, subject_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def create(self, *, subject_id: int, user_id: int, requested_at: datetime, **details: Any) -> int:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Move a pending request to a terminal state.

        Must only touch rows still in ``pending`` and report whether it did, so that
        two concurrent reviewers cannot both win.
        """

        raise NotImplementedError

    def list_rows(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        raise NotImplementedError


class ApprovalWorkflow(Generic[R]):
    def __init__(
        self,
        store: ApprovalStore,
        uow: UnitOfWork,
        *,
        subject: str,
        holds: Optional[HoldsPredicate] = None,
        on_approve: Optional[ApproveHook] = None,
        max_reason_length: int = MAX_REASON_LENGTH,
        held_message: Optional[str] = None,
        pending_message: Optional[str] = None,
    ):
        self._store = store
        self._uow = uow
        self._subject = subject
        self._holds = holds
        self._on_approve = on_approve
        self._max_reason_length = int(max_reason_length)
        self._held_message = held_message or f"You already have access to this {subject}"
        self._pending_message = pending_message or f"Request already pending for this {subject}"

    def submit(self, *, requester: Viewer, subject_id: int, now: datetime | None = None, **details: Any) -> R:
        now = now or now_local()
        with self._uow.transaction():
            if self._holds is not None and self._holds(int(subject_id), requester.user_id, now):
                raise ConflictError(self._held_message)
            if self._store.has_pending(subject_id=int(subject_id), user_id=requester.user_id):
                raise ConflictError(self._pending_message)

            request_id = self._store.create(
                subject_id=int(subject_id),
                user_id=requester.user_id,
                requested_at=now,
                **details,
            )

        logger.info("%s request %s submitted by user %s", self._subject, request_id, requester.user_id)
        return self.get(request_id)

    def approve(self, *, reviewer: Viewer, request_id: int, now: datetime | None = None) -> R:
        reviewer.require_admin()
        now = now or now_local()

        with self._uow.transaction():
            req = self.get(request_id)
            self._require_pending(req)

            decided = self._store.decide(
                request_id=req.request_id,
                status=RequestStatus.APPROVED,
                reviewed_by=reviewer.user_id,
                reviewed_at=now,
            )
            if not decided:
                raise ConflictError("Request already reviewed")

            if self._on_approve is not None:
                self._on_approve(req, now)

        logger.info("%s request %s approved by user %s", self._subject, req.request_id, reviewer.user_id)
        return self.get(req.request_id)

    def reject(
        self,
        *,
        reviewer: Viewer,
        request_id: int,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> R:
        reviewer.require_admin()
        if reason is not None and not isinstance(reason, str):
            raise ValidationError("Rejection reason must be text")
        if reason is not None and len(reason) > self._max_reason_length:
            raise ValidationError(f"Rejection reason must be {self._max_reason_length} characters or less")
        reason = reason if reason and reason.strip() else None
        now = now or now_local()

        with self._uow.transaction():
            req = self.get(request_id)
            self._require_pending(req)

            decided = self._store.decide(
                request_id=req.request_id,
                status=RequestStatus.REJECTED,
                reviewed_by=reviewer.user_id,
                reviewed_at=now,
                rejection_reason=reason,
            )
            if not decided:
                raise ConflictError("Request already reviewed")

        logger.info("%s request %s rejected by user %s", self._subject, req.request_id, reviewer.user_id)
        return self.get(req.request_id)

    def list_for(self, viewer: Viewer, *, status: Optional[RequestStatus] = None, limit: int = 200) -> Sequence[dict]:
        return self._store.list_rows(status=status, user_id=viewer.scope_user_id(), limit=limit)

    def get(self, request_id: int) -> R:
        req = self._store.get(int(request_id))
        if req is None:
            raise NotFoundError("Request not found")
        return req

    @staticmethod
    def _require_pending(req: ApprovalRecord) -> None:
        if req.status != RequestStatus.PENDING:
            raise ConflictError("Request already reviewed")


def parse_status_filter(value: Optional[str]) -> Optional[RequestStatus]:
    """``all`` (or nothing) means no filter."""
    if value in (None, "", "all"):
        return None
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError("Status must be one of pending, approved, rejected, all")
