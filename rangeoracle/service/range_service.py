"""
Contract of the external range activation service.

The oracle never implements range management itself. Everything it knows
about the service goes through these two protocols.
"""

from typing import Protocol, runtime_checkable

from rangeoracle.models import KeyRange


INVALID_VERSION = -1


@runtime_checkable
class RangeTransaction(Protocol):

    async def get_granule_ranges(
        self,
        key_range: KeyRange,
        limit: int,
    ) -> list[KeyRange]:
        """
        Contiguous partition of active coverage overlapping ``key_range``.
        May raise TransactionConflict.
        """
        ...

    async def on_error(self, error: Exception) -> None:
        """
        Apply the service's conflict backoff for a retryable error,
        re-raise anything else.
        """
        ...


@runtime_checkable
class ExternalRangeService(Protocol):

    async def activate(self, key_range: KeyRange) -> bool:
        ...

    async def deactivate(self, key_range: KeyRange) -> bool:
        ...

    async def is_active(self, key_range: KeyRange) -> int:
        """
        Version at which all of ``key_range`` was observed active, or
        INVALID_VERSION.
        """
        ...

    async def purge(self, key_range: KeyRange, force: bool) -> bytes:
        ...

    async def await_purge_complete(self, purge_token: bytes) -> None:
        ...

    async def list_active_ranges(
        self,
        key_range: KeyRange,
        limit: int,
    ) -> list[KeyRange]:
        """
        Registered active ranges intersecting ``key_range``, each reported
        as its full stored extent.
        """
        ...

    def create_transaction(self) -> RangeTransaction:
        ...
