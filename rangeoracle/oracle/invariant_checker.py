"""
Invariant Checker - verifies the service's observable state for a range.

A check has three steps:
1. Poll until ``is_active`` agrees with the expected verdict. The service
   is eventually consistent, so disagreement here is not a failure until
   the convergence deadline passes.
2. List the registered active ranges: exactly one, fully containing the
   range, when active; none when inactive.
3. Read the granules transactionally: a gap-free, non-overlapping chain
   covering the range when active; empty when inactive.

Any mismatch after step 1 converges is an InvariantViolation.
"""

from rangeoracle.errors import InvariantViolation, ensure
from rangeoracle.logging import Logger
from rangeoracle.models import KeyRange, covers, has_overlap
from rangeoracle.service import RangeServiceClient

from .logging_models import CheckerDebug, CheckerError, CheckerTrace
from .polling import poll_until


class InvariantChecker:

    def __init__(
        self,
        client: RangeServiceClient,
        poll_interval: float = 1.0,
        convergence_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._convergence_timeout = convergence_timeout
        self._logger = Logger()

    async def is_range_active(self, key_range: KeyRange) -> bool:
        return await self._client.is_range_active(key_range)

    async def check_range(self, key_range: KeyRange, expected_active: bool) -> None:
        try:
            await self._await_verdict(key_range, expected_active)
            await self._check_listed_ranges(key_range, expected_active)
            await self._check_granules(key_range, expected_active)

        except InvariantViolation as violation:
            await self._logger.log(
                CheckerError(
                    message=f"CHECK: {'Active' if expected_active else 'Inactive'} range {key_range} violated: {violation}",
                    key_range=key_range.printable(),
                    expected_active=expected_active,
                )
            )
            raise

        await self._logger.log(
            CheckerTrace(
                message=f"CHECK: {'Active' if expected_active else 'Inactive'} range {key_range} passed",
                key_range=key_range.printable(),
                expected_active=expected_active,
            )
        )

    async def close(self) -> None:
        await self._logger.close()

    async def _await_verdict(self, key_range: KeyRange, expected_active: bool):

        async def log_failed_poll(verdict: bool, attempts: int):
            await self._logger.log(
                CheckerDebug(
                    message=f"CHECK: {'Active' if expected_active else 'Inactive'} range {key_range} failed! (attempt {attempts})",
                    key_range=key_range.printable(),
                    expected_active=expected_active,
                )
            )

        await poll_until(
            lambda: self._client.is_range_active(key_range),
            lambda verdict: verdict == expected_active,
            interval=self._poll_interval,
            timeout=self._convergence_timeout,
            describe=f"range {key_range} to report {'active' if expected_active else 'inactive'}",
            on_retry=log_failed_poll,
        )

    async def _check_listed_ranges(self, key_range: KeyRange, expected_active: bool):
        active_ranges = await self._client.list_active_ranges(key_range)

        if expected_active:
            ensure(
                len(active_ranges) == 1,
                "Active range must be covered by exactly one registered range",
                key_range=key_range,
                listed=[str(listed) for listed in active_ranges],
            )
            ensure(
                active_ranges[0].contains(key_range),
                "Registered range must fully contain the active range",
                key_range=key_range,
                listed=active_ranges[0],
            )

        else:
            ensure(
                len(active_ranges) == 0,
                "Inactive range must not overlap any registered range",
                key_range=key_range,
                listed=[str(listed) for listed in active_ranges],
            )

    async def _check_granules(self, key_range: KeyRange, expected_active: bool):
        granules = await self._client.get_granule_ranges(key_range)

        if expected_active:
            ensure(
                len(granules) >= 1,
                "Active range must have at least one granule",
                key_range=key_range,
            )
            ensure(
                granules[0].begin <= key_range.begin,
                "First granule must start at or before the range",
                key_range=key_range,
                first_granule=granules[0],
            )
            ensure(
                granules[-1].end >= key_range.end,
                "Last granule must end at or after the range",
                key_range=key_range,
                last_granule=granules[-1],
            )
            ensure(
                covers(granules, key_range),
                "Granules must be contiguous",
                key_range=key_range,
                granules=[str(granule) for granule in granules],
            )
            ensure(
                not has_overlap(granules),
                "Granules must not overlap",
                key_range=key_range,
                granules=[str(granule) for granule in granules],
            )

        elif len(granules) > 0:
            await self._logger.log(
                CheckerDebug(
                    message=f"Granules for {key_range} not empty! ({len(granules)}): {', '.join(str(granule) for granule in granules)}",
                    key_range=key_range.printable(),
                    expected_active=expected_active,
                )
            )
            raise InvariantViolation(
                "Inactive range must have no granules",
                key_range=key_range,
                granules=len(granules),
            )
