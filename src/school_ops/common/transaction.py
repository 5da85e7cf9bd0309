from __future__ import annotations

from typing import ContextManager, Protocol


class TransactionManager(Protocol):
    """Anything that can run a block as one all-or-nothing unit.

    `DatabaseConnection` satisfies this for MySQL; tests use an in-memory store.
    """

    def atomic(self) -> ContextManager[object]:
        raise NotImplementedError
