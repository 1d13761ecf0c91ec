from rangeoracle.env import Env
from rangeoracle.logging import LoggingConfig
from rangeoracle.service import (
    ExternalRangeService,
    InMemoryRangeService,
    InMemoryServiceConfig,
)

from .orchestrator import Orchestrator
from .results import OracleOutcome
from .settings import OracleSettings


async def run_oracle(
    env: Env,
    service: ExternalRangeService | None = None,
) -> OracleOutcome:
    """
    Run the oracle once. Without an explicit ``service`` the in-memory
    reference service is built from the environment's service options.
    """
    LoggingConfig().update(**env.get_logging_config())

    settings = OracleSettings.from_env(env)

    if service is None:
        service = InMemoryRangeService(
            InMemoryServiceConfig(**env.get_service_config()),
            seed=settings.seed,
        )

    orchestrator = Orchestrator(service, settings)
    return await orchestrator.run()
