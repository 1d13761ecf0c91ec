from .orchestrator import Orchestrator as Orchestrator
from .results import (
    OracleOutcome as OracleOutcome,
    OracleResult as OracleResult,
)
from .settings import OracleSettings as OracleSettings
from .run_oracle import run_oracle as run_oracle
