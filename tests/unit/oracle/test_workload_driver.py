import asyncio
import random

import pytest

from rangeoracle.errors import InvariantViolation
from rangeoracle.models import KeyRange
from rangeoracle.oracle import InvariantChecker, RangeStateTracker, WorkloadDriver
from rangeoracle.service import InMemoryRangeService, RangeServiceClient


class RejectingService(InMemoryRangeService):

    async def activate(self, key_range: KeyRange) -> bool:
        return False


class RefusingDeactivationService(InMemoryRangeService):
    """Records whether a range was still tracked active when its deactivation arrived."""

    def __init__(self) -> None:
        super().__init__()
        self.tracker: RangeStateTracker | None = None
        self.tracked_during_deactivation: list[bool] = []

    async def deactivate(self, key_range: KeyRange) -> bool:
        self.tracked_during_deactivation.append(
            key_range in self.tracker.active_ranges
        )
        return False


def create_driver(
    client: RangeServiceClient,
    tracker: RangeStateTracker,
    checker: InvariantChecker | None = None,
    check_inactive: bool = False,
) -> WorkloadDriver:
    return WorkloadDriver(
        client,
        tracker,
        random.Random(42),
        ops_per_second=500,
        checker=checker,
        check_inactive=check_inactive,
    )


class TestSetup:
    @pytest.mark.asyncio
    async def test_setup_registers_target_ranges(
        self,
        client: RangeServiceClient,
        tracker: RangeStateTracker,
        checker: InvariantChecker,
    ):
        driver = create_driver(client, tracker, checker)

        await driver.setup(4)

        assert tracker.active_count == 4
        assert driver.registered == 4
        for key_range in tracker.active_ranges:
            assert key_range.begin.startswith(WorkloadDriver.RANGE_PREFIX)
            assert await client.is_range_active(key_range)

    @pytest.mark.asyncio
    async def test_failed_activation_is_not_tracked(
        self,
        tracker: RangeStateTracker,
    ):
        """A range is tracked active only after the service confirms it."""
        driver = create_driver(RangeServiceClient(RejectingService()), tracker)

        with pytest.raises(InvariantViolation):
            await driver.register_new_range()

        assert tracker.active_count == 0

    @pytest.mark.asyncio
    async def test_failed_deactivation_is_tracked_nowhere(
        self,
        tracker: RangeStateTracker,
    ):
        """A range is untracked before deactivation and never recorded inactive if it fails."""
        service = RefusingDeactivationService()
        service.tracker = tracker
        driver = create_driver(RangeServiceClient(service), tracker)
        await driver.setup(1)

        with pytest.raises(InvariantViolation):
            await driver.unregister_random_range()

        assert service.tracked_during_deactivation == [False]
        assert tracker.active_count == 0
        assert tracker.inactive_count == 0
        assert driver.unregistered == 0


class TestSteps:
    @pytest.mark.asyncio
    async def test_step_registers_when_nothing_is_tracked(
        self,
        client: RangeServiceClient,
        tracker: RangeStateTracker,
    ):
        driver = create_driver(client, tracker)

        key_range = await driver.step()

        assert tracker.active_ranges == (key_range,)

    @pytest.mark.asyncio
    async def test_unregister_moves_range_to_inactive(
        self,
        client: RangeServiceClient,
        tracker: RangeStateTracker,
        checker: InvariantChecker,
    ):
        driver = create_driver(client, tracker, checker, check_inactive=True)
        await driver.setup(1)

        key_range = await driver.unregister_random_range()

        assert tracker.active_count == 0
        assert tracker.inactive_ranges == (key_range,)
        assert not await client.is_range_active(key_range)
        assert driver.unregistered == 1

    @pytest.mark.asyncio
    async def test_tracked_state_matches_service_after_churn(
        self,
        client: RangeServiceClient,
        tracker: RangeStateTracker,
        checker: InvariantChecker,
    ):
        driver = create_driver(client, tracker, checker)
        await driver.setup(3)

        for _ in range(40):
            await driver.step()

        assert tracker.active_count == driver.registered - driver.unregistered
        assert tracker.inactive_count == driver.unregistered
        assert driver.force_purged <= driver.unregistered

        for key_range in tracker.active_ranges:
            await checker.check_range(key_range, True)

        for key_range in tracker.inactive_ranges:
            await checker.check_range(key_range, False)


class TestRun:
    @pytest.mark.asyncio
    async def test_run_is_cancellable(
        self,
        client: RangeServiceClient,
        tracker: RangeStateTracker,
    ):
        driver = create_driver(client, tracker)
        task = asyncio.create_task(driver.run())

        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert driver.registered > 0
