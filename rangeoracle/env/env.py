from __future__ import annotations
from pydantic import BaseModel, StrictBool, StrictStr, StrictInt, StrictFloat
from typing import Callable, Dict, Literal, Union

PrimaryType = Union[str, int, float, bytes, bool]


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    # Run phase
    ORACLE_TEST_DURATION: StrictFloat = 30.0
    ORACLE_OPS_PER_SECOND: StrictInt | None = None
    ORACLE_TARGET_RANGES: StrictInt | None = None
    ORACLE_SEQUENTIAL_KEYS: StrictBool | None = None
    ORACLE_SEQUENTIAL_GAP: StrictInt | None = None
    ORACLE_CLIENT_ID: StrictInt = 0
    ORACLE_CLIENT_COUNT: StrictInt = 1
    ORACLE_SEED: StrictInt | None = None

    # Checking
    ORACLE_POLL_INTERVAL: StrictFloat = 1.0
    ORACLE_CONVERGENCE_TIMEOUT: StrictFloat = 300.0
    ORACLE_LIST_LIMIT: StrictInt = 1_000_000
    ORACLE_CHECK_AFTER_MUTATION: StrictBool = True
    ORACLE_CHECK_INACTIVE_RANGES: StrictBool = False

    # Scenarios
    ORACLE_SCENARIO_INTERVAL: StrictFloat = 1.0
    ORACLE_MAX_GAP_SUBRANGES: StrictInt = 6
    ORACLE_ENABLE_KNOWN_ISSUE_SCENARIOS: StrictBool = False

    # Logging
    ORACLE_LOG_LEVEL: StrictStr = "info"
    ORACLE_LOG_OUTPUT: Literal["stdout", "stderr"] = "stdout"
    ORACLE_LOGS_DIRECTORY: StrictStr | None = None

    # In-memory service
    ORACLE_SERVICE_CONVERGENCE_LAG: StrictFloat = 0.0
    ORACLE_SERVICE_CONFLICT_RATE: StrictFloat = 0.0
    ORACLE_SERVICE_SPLIT_GRANULES: StrictBool = True

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "ORACLE_TEST_DURATION": float,
            "ORACLE_OPS_PER_SECOND": int,
            "ORACLE_TARGET_RANGES": int,
            "ORACLE_SEQUENTIAL_KEYS": parse_bool,
            "ORACLE_SEQUENTIAL_GAP": int,
            "ORACLE_CLIENT_ID": int,
            "ORACLE_CLIENT_COUNT": int,
            "ORACLE_SEED": int,
            "ORACLE_POLL_INTERVAL": float,
            "ORACLE_CONVERGENCE_TIMEOUT": float,
            "ORACLE_LIST_LIMIT": int,
            "ORACLE_CHECK_AFTER_MUTATION": parse_bool,
            "ORACLE_CHECK_INACTIVE_RANGES": parse_bool,
            "ORACLE_SCENARIO_INTERVAL": float,
            "ORACLE_MAX_GAP_SUBRANGES": int,
            "ORACLE_ENABLE_KNOWN_ISSUE_SCENARIOS": parse_bool,
            "ORACLE_LOG_LEVEL": str,
            "ORACLE_LOG_OUTPUT": str,
            "ORACLE_LOGS_DIRECTORY": str,
            "ORACLE_SERVICE_CONVERGENCE_LAG": float,
            "ORACLE_SERVICE_CONFLICT_RATE": float,
            "ORACLE_SERVICE_SPLIT_GRANULES": parse_bool,
        }

    def get_service_config(self) -> dict:
        """Get in-memory service settings from environment settings."""
        return {
            'convergence_lag': self.ORACLE_SERVICE_CONVERGENCE_LAG,
            'conflict_rate': self.ORACLE_SERVICE_CONFLICT_RATE,
            'split_granules': self.ORACLE_SERVICE_SPLIT_GRANULES,
        }

    def get_logging_config(self) -> dict:
        """Get logging settings from environment settings."""
        return {
            'log_level': self.ORACLE_LOG_LEVEL,
            'log_output': self.ORACLE_LOG_OUTPUT,
            'log_directory': self.ORACLE_LOGS_DIRECTORY,
        }
