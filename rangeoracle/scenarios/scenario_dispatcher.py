import asyncio
import random
from collections import Counter

from rangeoracle.oracle.range_state_tracker import RangeStateTracker

from .scenario_runner import ScenarioRunner
from .scenario_type import ENABLED_SCENARIOS, ScenarioType, select_scenario


class ScenarioDispatcher:
    """
    Runs randomly selected scenarios back to back until stopped.

    The stop signal is only observed between scenarios: a scenario in
    progress always runs to completion.
    """

    def __init__(
        self,
        runner: ScenarioRunner,
        tracker: RangeStateTracker,
        rng: random.Random,
        enabled: tuple[ScenarioType, ...] = ENABLED_SCENARIOS,
        interval: float = 1.0,
    ) -> None:
        if len(enabled) == 0:
            raise ValueError("At least one scenario must be enabled")

        self._runner = runner
        self._tracker = tracker
        self._random = rng
        self.enabled = enabled
        self._interval = interval

        self._stop_event = asyncio.Event()
        self._stopped = asyncio.Event()

        self.completed: Counter[ScenarioType] = Counter()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    async def run(self) -> None:
        try:
            while not self._stop_event.is_set():
                await self.run_once()
                await asyncio.sleep(self._interval)

        finally:
            self._stopped.set()

    async def run_once(self) -> ScenarioType:
        scenario = select_scenario(self._random, self.enabled)

        # Scenario ranges come from the shared identity counter so they
        # never collide with workload ranges, but are never tracked.
        key_range = self._tracker.new_range(ScenarioRunner.RANGE_PREFIX)

        await self._runner.run(scenario, key_range)
        self.completed[scenario] += 1

        return scenario

    def stop(self) -> None:
        self._stop_event.set()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    async def close(self) -> None:
        await self._runner.close()
