from rangeoracle.models import KeyRange

from .range_service import (
    INVALID_VERSION,
    ExternalRangeService,
    RangeTransaction,
)
from .transaction import run_transactional


class RangeServiceClient:
    """
    Narrow adapter the oracle calls into. Holds no range state; every call
    is forwarded to the wrapped service.
    """

    def __init__(
        self,
        service: ExternalRangeService,
        list_limit: int = 1_000_000,
    ) -> None:
        self._service = service
        self.list_limit = list_limit

    @property
    def service(self) -> ExternalRangeService:
        return self._service

    async def set_range(self, key_range: KeyRange, active: bool) -> bool:
        if active:
            return await self._service.activate(key_range)

        return await self._service.deactivate(key_range)

    async def is_range_active(self, key_range: KeyRange) -> bool:
        version = await self._service.is_active(key_range)
        return version != INVALID_VERSION

    async def purge(self, key_range: KeyRange, force: bool) -> None:
        purge_token = await self._service.purge(key_range, force)
        await self._service.await_purge_complete(purge_token)

    async def list_active_ranges(self, key_range: KeyRange) -> list[KeyRange]:
        return await self._service.list_active_ranges(
            key_range,
            self.list_limit,
        )

    async def get_granule_ranges(self, key_range: KeyRange) -> list[KeyRange]:

        async def read_granules(transaction: RangeTransaction):
            return await transaction.get_granule_ranges(
                key_range,
                self.list_limit,
            )

        return await run_transactional(self._service, read_granules)
