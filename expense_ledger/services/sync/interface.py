"""
Mirror Gateway Interface

DESIGN DECISION: Outward sync is a narrow, best-effort mirror with two
operations: push records, pull records. There is no authentication flow,
no retry and no conflict resolution. synchronize() is a plain id
set-difference: deletions are never propagated and a record pushed twice
by concurrent callers stays duplicated.

A mirror whose read fails with SyncError is not diffed at all; the sync
reports the error and pushes nothing, instead of treating the mirror as
empty and appending every local record again.
"""

from abc import ABC, abstractmethod

from expense_ledger.models.expense import Expense, SyncResult


class MirrorGateway(ABC):
    """Abstract interface for an external expense mirror."""

    @abstractmethod
    async def push_new(self, expenses: list[Expense]) -> bool:
        """
        Append expenses to the mirror.

        Returns:
            True if the mirror accepted the rows, False otherwise
        """
        pass

    @abstractmethod
    async def pull_all(self) -> list[Expense]:
        """
        Read every expense from the mirror.

        Returns:
            The mirrored expenses; an empty list if the read failed
        """
        pass

    async def remote_ids(self) -> set[str]:
        """
        Ids the mirror already holds.

        Implementations that can see ids on records pull_all() drops
        should override this.

        Raises:
            SyncError: If the mirror cannot be read
        """
        return {expense.id for expense in await self.pull_all()}

    async def synchronize(self, local_expenses: list[Expense]) -> SyncResult:
        """Push the local expenses whose ids the mirror has not seen."""
        result = SyncResult()
        try:
            remote_ids = await self.remote_ids()
        except SyncError as e:
            result.errors.append(f"Sync error: {e}")
            return result

        new_expenses = [e for e in local_expenses if e.id not in remote_ids]

        if not new_expenses:
            result.success = True
            return result

        if await self.push_new(new_expenses):
            result.success = True
            result.synced = len(new_expenses)
        else:
            result.errors.append("Failed to append expenses to the mirror")
        return result


class SyncError(Exception):
    """The mirror could not be reached or rejected the request."""
    pass
