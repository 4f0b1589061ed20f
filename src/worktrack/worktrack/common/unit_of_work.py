from __future__ import annotations

from typing import ContextManager, Protocol


class UnitOfWork(Protocol):
    """Transaction scope shared by repositories.

    Every repository write made inside ``transaction()`` commits together or not at all.
    ``DatabaseConnection`` satisfies this protocol.
    """

    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError
