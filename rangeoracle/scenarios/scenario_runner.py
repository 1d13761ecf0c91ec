"""
Scenario Runner - fixed adversarial checks of range alignment semantics.

Every scenario receives a fresh range no other task touches, exercises one
part of the alignment contract on it and its sub-ranges, and tears down
whatever it activated before returning. A violated expectation raises
InvariantViolation immediately and skips the tear down.

Sub-ranges are derived from the target range's begin key ``K``:

    [K, K+1)            the target range
    [K.A, K.B)          the "active" sub-range
    K.AF, K.AG          keys strictly inside the active sub-range
"""

import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from rangeoracle.errors import InvariantViolation, ensure
from rangeoracle.logging import Logger
from rangeoracle.models import KeyRange, partition, with_suffix
from rangeoracle.oracle.invariant_checker import InvariantChecker
from rangeoracle.oracle.randomness import coinflip
from rangeoracle.service import RangeServiceClient

from .logging_models import ScenarioDebug, ScenarioError, ScenarioInfo
from .scenario_type import ScenarioType


@dataclass(slots=True, frozen=True)
class ScenarioKeys:
    target: KeyRange
    active: KeyRange
    middle: bytes
    middle_next: bytes

    @classmethod
    def from_range(cls, key_range: KeyRange) -> 'ScenarioKeys':
        return cls(
            target=key_range,
            active=KeyRange(
                with_suffix(key_range.begin, b"A"),
                with_suffix(key_range.begin, b"B"),
            ),
            middle=with_suffix(key_range.begin, b"AF"),
            middle_next=with_suffix(key_range.begin, b"AG"),
        )


class ScenarioRunner:

    RANGE_PREFIX = b"U_"

    def __init__(
        self,
        client: RangeServiceClient,
        checker: InvariantChecker,
        rng: random.Random,
        max_gap_subranges: int = 6,
    ) -> None:
        if max_gap_subranges < 3:
            raise ValueError("max_gap_subranges must be at least 3")

        self._client = client
        self._checker = checker
        self._random = rng
        self._max_gap_subranges = max_gap_subranges
        self._logger = Logger()

        self._handlers: dict[
            ScenarioType,
            Callable[[KeyRange], Awaitable[None]],
        ] = {
            ScenarioType.VERIFY_RANGE: self.verify_range,
            ScenarioType.VERIFY_RANGE_GAP: self.verify_range_gap,
            ScenarioType.RANGES_MISALIGNED: self.ranges_misaligned,
            ScenarioType.BLOBBIFY_IDEMPOTENT: self.blobbify_idempotent,
            ScenarioType.RE_BLOBBIFY: self.re_blobbify,
        }

    async def run(self, scenario: ScenarioType, key_range: KeyRange) -> None:
        handler = self._handlers[scenario]

        await self._log_info(
            scenario,
            f"Selected range {key_range} for scenario {scenario.name}",
            key_range,
        )

        try:
            await handler(key_range)

        except InvariantViolation as violation:
            await self._logger.log(
                ScenarioError(
                    message=f"Scenario {scenario.name} failed on {key_range}: {violation}",
                    scenario=scenario.name,
                    key_range=str(key_range),
                )
            )
            raise violation.with_context(scenario=scenario.name)

        await self._log_info(
            scenario,
            f"Scenario {scenario.name} passed on {key_range}",
            key_range,
        )

    async def verify_range(self, key_range: KeyRange) -> None:
        """
        Only the activated sub-range (and its own sub-ranges) report
        active. The target range, its complement around the sub-range and any
        range straddling a sub-range edge report inactive.
        """
        keys = ScenarioKeys.from_range(key_range)
        active = keys.active

        await self._log_debug(
            ScenarioType.VERIFY_RANGE,
            f"VerifyRange: {key_range}",
            key_range,
        )

        await self._expect_set(active, True, expected=True)
        await self._checker.check_range(active, True)

        for sub_range in (
            KeyRange(active.begin, keys.middle),
            KeyRange(keys.middle, active.end),
        ):
            await self._expect_active(sub_range, True)

        for straddling in (
            key_range,
            KeyRange(key_range.begin, active.begin),
            KeyRange(active.end, key_range.end),
            KeyRange(key_range.begin, keys.middle),
            KeyRange(keys.middle, key_range.end),
            KeyRange(key_range.begin, active.end),
            KeyRange(active.begin, key_range.end),
        ):
            await self._expect_active(straddling, False)

        await self.tear_down(active)

    async def verify_range_gap(
        self,
        key_range: KeyRange,
        boundaries: Sequence[bytes] | None = None,
        gap: int | None = None,
    ) -> None:
        """
        Activate every sub-range of a partition except one. Each activated
        sub-range checks active, the gap checks inactive, and so does the
        target range as a whole.
        """
        if boundaries is None:
            range_count = self._random.randint(3, self._max_gap_subranges)
            boundaries = [
                with_suffix(key_range.begin, f"{idx:04x}")
                for idx in range(range_count - 1)
            ]

        sub_ranges = partition(key_range, boundaries)
        range_count = len(sub_ranges)
        ensure(
            range_count == len(boundaries) + 1,
            "Partition must produce one more sub-range than boundaries",
            key_range=key_range,
            sub_ranges=range_count,
        )

        if gap is None:
            gap = self._random.randrange(range_count)

        await self._log_debug(
            ScenarioType.VERIFY_RANGE_GAP,
            f"VerifyRangeGap: {key_range} split into {range_count} with gap at {gap}",
            key_range,
        )

        for idx, sub_range in enumerate(sub_ranges):
            if idx == gap:
                await self._checker.check_range(sub_range, False)
                continue

            await self._expect_set(sub_range, True, expected=True)
            await self._checker.check_range(sub_range, True)

        await self._expect_active(key_range, False)

        if gap != 0:
            await self.tear_down(
                KeyRange(key_range.begin, sub_ranges[gap].begin)
            )

        if gap != range_count - 1:
            await self.tear_down(
                KeyRange(sub_ranges[gap].end, key_range.end)
            )

    async def ranges_misaligned(self, key_range: KeyRange) -> None:
        """
        A plain purge of a strict sub-range leaves the whole range active;
        a force purge of that sub-range deactivates the whole range.
        """
        keys = ScenarioKeys.from_range(key_range)
        sub_range = keys.active

        await self._expect_set(key_range, True, expected=True)
        await self._checker.check_range(key_range, True)

        # Listing from inside the range reports the full registered extent.
        listed = await self._client.list_active_ranges(sub_range)
        ensure(
            listed == [key_range],
            "Listing a sub-range must report the unclipped registered range",
            key_range=key_range,
            listed=[str(entry) for entry in listed],
        )

        await self._expect_exact_granules(key_range, key_range)

        await self._client.purge(sub_range, force=False)

        await self._expect_active(sub_range, True)
        await self._expect_active(key_range, True)

        await self._client.purge(sub_range, force=True)

        await self._checker.check_range(sub_range, False)
        await self._checker.check_range(key_range, False)

        await self.tear_down(key_range)

    async def blobbify_idempotent(self, key_range: KeyRange) -> None:
        """
        Re-activating identical boundaries always succeeds; activating or
        deactivating anything overlapping without matching them fails.
        """
        keys = ScenarioKeys.from_range(key_range)
        active = keys.active
        middle = keys.middle
        middle_next = keys.middle_next

        await self._log_debug(
            ScenarioType.BLOBBIFY_IDEMPOTENT,
            f"IdempotentUnit: {key_range}",
            key_range,
        )

        # Deactivating a range that was never active is a no-op.
        if coinflip(self._random):
            await self._expect_set(active, False, expected=True)

        await self._expect_set(active, True, expected=True)
        await self._checker.check_range(active, True)

        await self._expect_set(active, True, expected=True)
        await self._checker.check_range(active, True)

        for misaligned in (
            key_range,
            KeyRange(key_range.begin, active.end),
            KeyRange(active.begin, key_range.end),
            KeyRange(key_range.begin, middle),
            KeyRange(middle, key_range.end),
            KeyRange(active.begin, middle),
            KeyRange(middle, active.end),
            KeyRange(middle, middle_next),
        ):
            await self._expect_set(misaligned, True, expected=False)

        listed = await self._client.list_active_ranges(key_range)
        ensure(
            listed == [active],
            "Only the exactly activated range may be registered",
            key_range=key_range,
            listed=[str(entry) for entry in listed],
        )

        await self._expect_exact_granules(key_range, active)

        await self._client.purge(key_range, force=True)

        for misaligned in (
            key_range,
            KeyRange(key_range.begin, active.end),
            KeyRange(active.begin, key_range.end),
            KeyRange(active.begin, middle),
            KeyRange(middle, active.end),
            KeyRange(middle, middle_next),
        ):
            await self._expect_set(misaligned, False, expected=False)

        await self._expect_set(active, False, expected=True)

        await self._expect_set(active, True, expected=True)
        await self._expect_set(active, True, expected=True)
        await self._checker.check_range(active, True)

        await self.tear_down(active)

    async def re_blobbify(self, key_range: KeyRange) -> None:
        """
        A range can be taken through activate, force purge, deactivate
        and activate again, ending fully active.
        """
        await self._expect_set(key_range, True, expected=True)
        await self._checker.check_range(key_range, True)

        await self._client.purge(key_range, force=True)
        await self._checker.check_range(key_range, False)

        await self._expect_set(key_range, False, expected=True)
        await self._checker.check_range(key_range, False)

        await self._expect_set(key_range, True, expected=True)
        await self._checker.check_range(key_range, True)

        await self.tear_down(key_range)

    async def tear_down(self, key_range: KeyRange) -> None:
        await self._logger.log(
            ScenarioDebug(
                message=f"Tearing down {key_range} after scenario",
                scenario="tear_down",
                key_range=str(key_range),
            )
        )

        await self._client.purge(key_range, force=True)
        await self._expect_set(key_range, False, expected=True)

        await self._logger.log(
            ScenarioDebug(
                message=f"Range {key_range} torn down",
                scenario="tear_down",
                key_range=str(key_range),
            )
        )

    async def close(self) -> None:
        await self._logger.close()

    async def _expect_set(
        self,
        key_range: KeyRange,
        active: bool,
        expected: bool,
    ) -> None:
        success = await self._client.set_range(key_range, active)
        ensure(
            success == expected,
            f"{'Activating' if active else 'Deactivating'} range {'succeeded' if success else 'failed'} unexpectedly",
            key_range=key_range,
        )

    async def _expect_active(self, key_range: KeyRange, expected: bool) -> None:
        is_active = await self._checker.is_range_active(key_range)
        ensure(
            is_active == expected,
            f"Range reported {'active' if is_active else 'inactive'}, expected {'active' if expected else 'inactive'}",
            key_range=key_range,
        )

    async def _expect_exact_granules(
        self,
        query: KeyRange,
        registered: KeyRange,
    ) -> None:
        granules = await self._client.get_granule_ranges(query)
        ensure(
            len(granules) >= 1
            and granules[0].begin == registered.begin
            and granules[-1].end == registered.end,
            "Granules must span exactly the registered range",
            key_range=registered,
            granules=[str(granule) for granule in granules],
        )
        ensure(
            all(
                granules[idx].end == granules[idx + 1].begin
                for idx in range(len(granules) - 1)
            ),
            "Granules must be contiguous",
            key_range=registered,
            granules=[str(granule) for granule in granules],
        )

    async def _log_debug(
        self,
        scenario: ScenarioType,
        message: str,
        key_range: KeyRange,
    ) -> None:
        await self._logger.log(
            ScenarioDebug(
                message=message,
                scenario=scenario.name,
                key_range=str(key_range),
            )
        )

    async def _log_info(
        self,
        scenario: ScenarioType,
        message: str,
        key_range: KeyRange,
    ) -> None:
        await self._logger.log(
            ScenarioInfo(
                message=message,
                scenario=scenario.name,
                key_range=str(key_range),
            )
        )
