"""
Workload Driver - background churn of range activations.

Repeatedly registers new ranges or unregisters a random tracked one at a
Poisson-paced target rate, keeping the RangeStateTracker in step with
what the service confirmed.
"""

import random

from rangeoracle.errors import ensure
from rangeoracle.logging import Logger
from rangeoracle.models import KeyRange
from rangeoracle.service import RangeServiceClient

from .invariant_checker import InvariantChecker
from .logging_models import WorkloadDebug, WorkloadInfo
from .pacing import PoissonPacer
from .randomness import coinflip
from .range_state_tracker import RangeStateTracker


class WorkloadDriver:

    RANGE_PREFIX = b"R_"

    def __init__(
        self,
        client: RangeServiceClient,
        tracker: RangeStateTracker,
        rng: random.Random,
        ops_per_second: float,
        checker: InvariantChecker | None = None,
        check_inactive: bool = False,
    ) -> None:
        """
        Args:
            client: Adapter over the range service
            tracker: Shared tracked state, written only by this driver
            rng: Seeded generator for every random choice the driver makes
            ops_per_second: Mean arrival rate of operations
            checker: When given, each mutated range is checked right after
                     the service confirms the mutation
            check_inactive: Also check unregistered ranges report inactive
        """
        self._client = client
        self._tracker = tracker
        self._random = rng
        self._pacer = PoissonPacer(ops_per_second, rng)
        self._checker = checker
        self._check_inactive = check_inactive
        self._logger = Logger()

        self.registered = 0
        self.unregistered = 0
        self.force_purged = 0

    async def setup(self, target_ranges: int) -> None:
        for _ in range(target_ranges):
            await self.register_new_range()

        await self._log_info(
            f"Registered {target_ranges} initial ranges",
            key_range="",
        )

    async def run(self) -> None:
        while True:
            self._pacer.schedule_next()
            await self.step()
            await self._pacer.wait()

    async def step(self) -> KeyRange:
        if self._tracker.active_count == 0 or coinflip(self._random):
            return await self.register_new_range()

        return await self.unregister_random_range()

    async def register_new_range(self) -> KeyRange:
        key_range = self._tracker.new_range(self.RANGE_PREFIX)
        await self._log_debug(
            f"Registering new range {key_range}",
            key_range=key_range,
        )

        # Tracked only after the service confirms, so a failed activation
        # is never checked as active.
        success = await self._client.set_range(key_range, True)
        ensure(
            success,
            "Activating a fresh range must succeed",
            key_range=key_range,
        )

        await self._log_debug(
            f"Registered new range {key_range}",
            key_range=key_range,
        )

        self._tracker.record_activated(key_range)
        self.registered += 1

        if self._checker is not None:
            await self._checker.check_range(key_range, True)

        return key_range

    async def unregister_random_range(self) -> KeyRange:
        # Untracked before the service call: while the deactivation is in
        # flight the range could legitimately report either state.
        key_range = self._tracker.take_random_active()

        await self._log_debug(
            f"Unregistering range {key_range}",
            key_range=key_range,
        )

        if coinflip(self._random):
            await self._log_debug(
                f"Force purging range before un-registering: {key_range}",
                key_range=key_range,
            )
            await self._client.purge(key_range, force=True)
            self.force_purged += 1

        success = await self._client.set_range(key_range, False)
        ensure(
            success,
            "Deactivating a tracked active range must succeed",
            key_range=key_range,
        )

        await self._log_debug(
            f"Unregistered range {key_range}",
            key_range=key_range,
        )

        self._tracker.record_deactivated(key_range)
        self.unregistered += 1

        if self._checker is not None and self._check_inactive:
            await self._checker.check_range(key_range, False)

        return key_range

    async def close(self) -> None:
        await self._logger.close()

    async def _log_debug(self, message: str, key_range: KeyRange | str) -> None:
        await self._logger.log(
            WorkloadDebug(
                message=message,
                **self._get_log_context(key_range),
            )
        )

    async def _log_info(self, message: str, key_range: KeyRange | str) -> None:
        await self._logger.log(
            WorkloadInfo(
                message=message,
                **self._get_log_context(key_range),
            )
        )

    def _get_log_context(self, key_range: KeyRange | str) -> dict:
        return {
            "key_range": str(key_range),
            "active_ranges": self._tracker.active_count,
            "inactive_ranges": self._tracker.inactive_count,
        }
