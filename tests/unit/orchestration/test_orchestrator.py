import asyncio
import os

import pytest

from rangeoracle.env import Env
from rangeoracle.errors import ServiceError
from rangeoracle.logging import LoggingConfig
from rangeoracle.models import KeyRange
from rangeoracle.orchestration import (
    OracleOutcome,
    OracleResult,
    OracleSettings,
    Orchestrator,
    run_oracle,
)
from rangeoracle.scenarios import ALL_SCENARIOS, ScenarioType
from rangeoracle.service import InMemoryRangeService, InMemoryServiceConfig


class ForgetfulService(InMemoryRangeService):
    """Drops workload registrations a short while after confirming them."""

    def __init__(self, forget_after: int) -> None:
        super().__init__(seed=3)
        self._forget_after = forget_after
        self._activations = 0

    async def activate(self, key_range: KeyRange) -> bool:
        success = await super().activate(key_range)
        self._activations += 1

        if self._activations > self._forget_after:
            self._remove(key_range)

        return success


class DisconnectingService(InMemoryRangeService):
    """Loses its connection after a fixed number of activations."""

    def __init__(self, disconnect_after: int) -> None:
        super().__init__(seed=3)
        self._disconnect_after = disconnect_after
        self._activations = 0

    async def activate(self, key_range: KeyRange) -> bool:
        self._activations += 1
        if self._activations > self._disconnect_after:
            raise ServiceError("Connection to the range service was lost")

        return await super().activate(key_range)


def create_settings(**overrides) -> OracleSettings:
    settings = {
        "seed": 2024,
        "test_duration": 0.3,
        "ops_per_second": 50,
        "target_ranges": 3,
        "sequential": True,
        "sequential_gap": 1,
        "poll_interval": 0.01,
        "convergence_timeout": 1.0,
        "scenario_interval": 0.01,
    }
    settings.update(overrides)

    return OracleSettings(**settings)


class TestOrchestrator:
    @pytest.mark.asyncio
    async def test_conforming_service_passes(self):
        """A full setup, run and check cycle passes against the reference service."""
        service = InMemoryRangeService(seed=1)
        orchestrator = Orchestrator(service, create_settings())

        outcome = await orchestrator.run()

        assert outcome.passed, outcome.error
        assert outcome.seed == 2024
        assert outcome.ranges_registered >= 3
        assert outcome.ranges_checked == orchestrator.tracker.active_count
        assert sum(outcome.scenarios_completed.values()) > 0

    @pytest.mark.asyncio
    async def test_all_scenarios_with_lag_and_conflicts(self):
        service = InMemoryRangeService(
            InMemoryServiceConfig(
                convergence_lag=0.02,
                conflict_rate=0.2,
                conflict_backoff=0.001,
                max_conflict_backoff=0.005,
            ),
            seed=9,
        )
        orchestrator = Orchestrator(
            service,
            create_settings(
                enabled_scenarios=ALL_SCENARIOS,
                check_inactive_ranges=True,
            ),
        )

        outcome = await orchestrator.run()

        assert outcome.passed, outcome.error
        assert outcome.ranges_checked == (
            orchestrator.tracker.active_count + orchestrator.tracker.inactive_count
        )

    @pytest.mark.asyncio
    async def test_broken_service_fails(self):
        """A service losing confirmed registrations produces a failed outcome."""
        orchestrator = Orchestrator(
            ForgetfulService(forget_after=1),
            create_settings(convergence_timeout=0.1),
        )

        outcome = await orchestrator.run()

        assert outcome.result == OracleResult.FAILED
        assert outcome.error is not None
        assert "2024" in outcome.summary()

    @pytest.mark.asyncio
    async def test_secondary_client_skips_scenarios(self):
        orchestrator = Orchestrator(
            InMemoryRangeService(seed=1),
            create_settings(client_id=1, client_count=2),
        )

        outcome = await orchestrator.run()

        assert orchestrator.dispatcher is None
        assert outcome.passed, outcome.error
        assert sum(outcome.scenarios_completed.values()) == 0
        for key_range in orchestrator.tracker.active_ranges:
            assert key_range.begin >= b"R_00989680"

    @pytest.mark.asyncio
    async def test_service_errors_propagate(self):
        """Errors other than invariant violations are not reported as outcomes."""
        orchestrator = Orchestrator(
            DisconnectingService(disconnect_after=3),
            create_settings(),
        )

        with pytest.raises(ServiceError):
            await orchestrator.run()

        assert orchestrator.driver.registered == 3

    @pytest.mark.asyncio
    async def test_driver_error_raised_when_stopping(self):
        """A driver failing just before the check phase fails the check."""
        orchestrator = Orchestrator(InMemoryRangeService(seed=1), create_settings())

        async def fail():
            raise ServiceError("Connection to the range service was lost")

        orchestrator._driver_task = asyncio.create_task(fail())
        await asyncio.sleep(0)

        with pytest.raises(ServiceError):
            await orchestrator.check()

        assert orchestrator.ranges_checked == 0

    @pytest.mark.asyncio
    async def test_run_closes_log_files(self, temp_log_directory: str):
        orchestrator = Orchestrator(InMemoryRangeService(seed=1), create_settings())

        async def run_logging_to_files():
            LoggingConfig().update(
                log_directory=temp_log_directory,
                log_level="debug",
            )
            return await orchestrator.run()

        outcome = await asyncio.create_task(run_logging_to_files())

        assert outcome.passed, outcome.error
        assert os.path.getsize(
            os.path.join(temp_log_directory, "default.log.json")
        ) > 0

        loggers = [
            orchestrator._logger,
            orchestrator.driver._logger,
            orchestrator.checker._logger,
            orchestrator.dispatcher._runner._logger,
        ]
        for logger in loggers:
            for context in logger._contexts.values():
                assert context.stream._files == {}


class TestOracleOutcome:
    def test_summary(self):
        outcome = OracleOutcome(seed=7, result=OracleResult.PASSED)
        outcome.scenarios_completed[ScenarioType.VERIFY_RANGE] += 2

        summary = outcome.summary()

        assert summary.startswith("PASSED")
        assert "seed 7" in summary
        assert "VERIFY_RANGE=2" in summary

    def test_failed_summary_includes_error(self):
        outcome = OracleOutcome(
            seed=7,
            result=OracleResult.FAILED,
            error="Inactive range must have no granules",
        )

        assert not outcome.passed
        assert outcome.summary().endswith("error: Inactive range must have no granules")


class TestRunOracle:
    @pytest.mark.asyncio
    async def test_runs_against_in_memory_service(self):
        env = Env(
            ORACLE_SEED=5,
            ORACLE_TEST_DURATION=0.2,
            ORACLE_OPS_PER_SECOND=20,
            ORACLE_TARGET_RANGES=2,
            ORACLE_POLL_INTERVAL=0.01,
            ORACLE_CONVERGENCE_TIMEOUT=1.0,
            ORACLE_SCENARIO_INTERVAL=0.01,
            ORACLE_LOG_LEVEL="critical",
        )

        outcome = await run_oracle(env)

        assert outcome.passed, outcome.error
        assert outcome.seed == 5
