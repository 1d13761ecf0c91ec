import contextvars
from typing import Iterable, Literal

import msgspec

from rangeoracle.logging.models import LogLevel, LogLevelName

from .stream_type import StreamType


LogOutput = Literal['stdout', 'stderr']


class LoggingSettings(msgspec.Struct, frozen=True):
    level: LogLevel = LogLevel.INFO
    output: StreamType = StreamType.STDOUT
    directory: str | None = None
    disabled_loggers: frozenset[str] = msgspec.field(default_factory=frozenset)


_logging_settings: contextvars.ContextVar[LoggingSettings] = contextvars.ContextVar(
    "_logging_settings",
    default=LoggingSettings(),
)


class LoggingConfig:
    """
    Logging settings of the current context.

    ``update`` replaces the settings for the current context, so tasks
    created afterwards inherit them while already running tasks keep
    their own.
    """

    def update(
        self,
        log_directory: str | None = None,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
        disabled_loggers: Iterable[str] | None = None,
    ):
        changes = {}

        if log_directory:
            changes["directory"] = log_directory

        if log_level:
            changes["level"] = LogLevel.to_level(log_level)

        if log_output:
            changes["output"] = StreamType(log_output)

        if disabled_loggers is not None:
            changes["disabled_loggers"] = frozenset(disabled_loggers)

        _logging_settings.set(
            msgspec.structs.replace(_logging_settings.get(), **changes)
        )

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        settings = _logging_settings.get()

        return (
            logger_name not in settings.disabled_loggers
            and log_level.severity >= settings.level.severity
        )

    @property
    def level(self) -> LogLevel:
        return _logging_settings.get().level

    @property
    def output(self) -> StreamType:
        return _logging_settings.get().output

    @property
    def directory(self) -> str | None:
        return _logging_settings.get().directory
