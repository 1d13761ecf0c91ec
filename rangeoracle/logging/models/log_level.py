from __future__ import annotations

from enum import Enum
from typing import Literal

LogLevelName = Literal[
    'trace',
    'debug',
    'info',
    'warn',
    'error',
    'critical',
    'fatal',
]


class LogLevel(Enum):
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    FATAL = "FATAL"

    @classmethod
    def to_level(cls, level_name: LogLevelName | str) -> LogLevel:
        try:
            return cls[level_name.upper()]

        except KeyError:
            raise ValueError(f"Unknown log level {level_name!r}") from None

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


# Declaration order is severity order.
_SEVERITY = {level: severity for severity, level in enumerate(LogLevel)}
