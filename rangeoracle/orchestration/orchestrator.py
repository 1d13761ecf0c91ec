"""
Orchestrator - setup, run and check phases of one oracle run.

- setup: seed the service with the initial tracked active ranges
- start: run the WorkloadDriver and (on client 0) the ScenarioDispatcher
  concurrently for the configured duration
- check: cancel the driver, ask the dispatcher to stop, verify every
  tracked range concurrently, then wait for the dispatcher's current
  scenario to finish

An InvariantViolation raised by any task aborts the run at once: every
other task is cancelled and the violation is reported as a failed
outcome. Any other error also cancels every task but propagates to the
caller. Log files of every component are closed when the run ends.
"""

import asyncio
import random
import time
from typing import Coroutine, Any

from rangeoracle.errors import InvariantViolation
from rangeoracle.logging import Logger
from rangeoracle.oracle import (
    InvariantChecker,
    RangeStateTracker,
    WorkloadDriver,
    child_random,
)
from rangeoracle.scenarios import ScenarioDispatcher, ScenarioRunner
from rangeoracle.service import ExternalRangeService, RangeServiceClient

from .logging_models import OrchestratorError, OrchestratorInfo
from .results import OracleOutcome, OracleResult
from .settings import OracleSettings


class Orchestrator:

    def __init__(
        self,
        service: ExternalRangeService,
        settings: OracleSettings,
    ) -> None:
        self.settings = settings
        self._random = random.Random(settings.seed)
        self._logger = Logger()

        self.client = RangeServiceClient(
            service,
            list_limit=settings.list_limit,
        )

        self.tracker = RangeStateTracker(
            child_random(self._random),
            sequential=settings.sequential,
            sequential_gap=settings.sequential_gap,
            client_id=settings.client_id,
        )

        self.checker = InvariantChecker(
            self.client,
            poll_interval=settings.poll_interval,
            convergence_timeout=settings.convergence_timeout,
        )

        self.driver = WorkloadDriver(
            self.client,
            self.tracker,
            child_random(self._random),
            settings.ops_per_second,
            checker=self.checker if settings.check_after_mutation else None,
            check_inactive=settings.check_inactive_ranges,
        )

        self.dispatcher: ScenarioDispatcher | None = None
        if settings.runs_scenarios:
            self.dispatcher = ScenarioDispatcher(
                ScenarioRunner(
                    self.client,
                    self.checker,
                    child_random(self._random),
                    max_gap_subranges=settings.max_gap_subranges,
                ),
                self.tracker,
                child_random(self._random),
                enabled=settings.enabled_scenarios,
                interval=settings.scenario_interval,
            )

        self.ranges_checked = 0

        self._driver_task: asyncio.Task | None = None
        self._dispatcher_task: asyncio.Task | None = None

    async def setup(self) -> None:
        await self._log_info(
            f"Setting up {self.settings.target_ranges} initial ranges",
        )

        await self.driver.setup(self.settings.target_ranges)

        await self._log_info("Setup complete")

    async def start(self) -> None:
        self._driver_task = asyncio.create_task(self.driver.run())
        tasks = [self._driver_task]

        if self.dispatcher is not None:
            self._dispatcher_task = asyncio.create_task(self.dispatcher.run())
            tasks.append(self._dispatcher_task)

        done, _ = await asyncio.wait(
            tasks,
            timeout=self.settings.test_duration,
            return_when=asyncio.FIRST_EXCEPTION,
        )

        for task in done:
            if task.cancelled():
                continue

            if (error := task.exception()) is not None:
                await self._cancel_tasks()
                raise error

    async def check(self) -> bool:
        await self._stop_driver()

        if self.dispatcher is not None:
            self.dispatcher.stop()

        await self._log_info(
            f"Checking {self.tracker.active_count} active and {self.tracker.inactive_count} inactive ranges",
        )

        checks = [
            self.checker.check_range(key_range, True)
            for key_range in self.tracker.active_ranges
        ]

        if self.settings.check_inactive_ranges:
            checks.extend([
                self.checker.check_range(key_range, False)
                for key_range in self.tracker.inactive_ranges
            ])

        await self._gather_or_cancel(checks)
        self.ranges_checked += len(checks)

        if self._dispatcher_task is not None:
            await self._dispatcher_task

        await self._log_info("Check complete")

        return True

    async def run(self) -> OracleOutcome:
        start = time.monotonic()
        outcome = OracleOutcome(
            seed=self.settings.seed,
            result=OracleResult.PASSED,
        )

        try:
            await self.setup()
            await self.start()
            await self.check()

        except InvariantViolation as violation:
            outcome.result = OracleResult.FAILED
            outcome.error = str(violation)

            await self._logger.log(
                OrchestratorError(
                    message=f"Invariant violated, aborting run (replay with seed {self.settings.seed}): {violation}",
                    **self._get_log_context(),
                )
            )

        finally:
            await self._cancel_tasks()
            await self._close_loggers()

            outcome.duration_seconds = time.monotonic() - start
            outcome.ranges_registered = self.driver.registered
            outcome.ranges_unregistered = self.driver.unregistered
            outcome.ranges_force_purged = self.driver.force_purged
            outcome.ranges_checked = self.ranges_checked

            if self.dispatcher is not None:
                outcome.scenarios_completed.update(self.dispatcher.completed)

        return outcome

    async def _stop_driver(self) -> None:
        if self._driver_task is None:
            return

        self._driver_task.cancel()
        results = await asyncio.gather(self._driver_task, return_exceptions=True)

        # The driver may have failed between the end of the run phase and
        # its cancellation. Cancellation itself is not an Exception.
        for result in results:
            if isinstance(result, Exception):
                raise result

    async def _gather_or_cancel(
        self,
        coroutines: list[Coroutine[Any, Any, None]],
    ) -> None:
        tasks = [asyncio.create_task(coroutine) for coroutine in coroutines]

        try:
            await asyncio.gather(*tasks)

        except BaseException:
            for task in tasks:
                task.cancel()

            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _cancel_tasks(self) -> None:
        pending = [
            task for task in (self._driver_task, self._dispatcher_task)
            if task is not None and not task.done()
        ]

        for task in pending:
            task.cancel()

        if len(pending) > 0:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _close_loggers(self) -> None:
        closing = [
            self._logger.close(),
            self.driver.close(),
            self.checker.close(),
        ]

        if self.dispatcher is not None:
            closing.append(self.dispatcher.close())

        await asyncio.gather(*closing)

    async def _log_info(self, message: str) -> None:
        await self._logger.log(
            OrchestratorInfo(
                message=message,
                **self._get_log_context(),
            )
        )

    def _get_log_context(self) -> dict:
        return {
            "client_id": self.settings.client_id,
            "seed": self.settings.seed,
            "active_ranges": self.tracker.active_count,
            "inactive_ranges": self.tracker.inactive_count,
        }
