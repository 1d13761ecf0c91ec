import asyncio
import os
import pathlib
import sys
from collections import defaultdict
from typing import (
    Callable,
    Dict,
    TextIO,
    TypeVar,
)

import msgspec

from rangeoracle.logging.config.logging_config import LoggingConfig
from rangeoracle.logging.config.stream_type import StreamType
from rangeoracle.logging.models import Entry, Log


T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"


def split_log_path(path: str | None) -> tuple[str | None, str | None]:
    """
    Split ``path`` into ``(filename, directory)``. A path without a suffix
    names a directory.
    """
    if path is None:
        return None, None

    logfile_path = pathlib.Path(path)
    if len(logfile_path.suffix) > 0:
        return logfile_path.name, str(logfile_path.parent.absolute())

    return None, str(logfile_path.absolute())


class LoggerStream:
    def __init__(
        self,
        name: str = 'default',
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
    ) -> None:
        self._name = name
        self._default_template = template
        self._default_logfile = filename
        self._default_log_directory = directory

        self._init_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._cwd: str | None = None

        self._files: Dict[str, TextIO] = {}
        self._file_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        self._config = LoggingConfig()
        self._initialized = False

    def set_defaults(
        self,
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
    ):
        if template:
            self._default_template = template

        if filename:
            self._default_logfile = filename

        if directory:
            self._default_log_directory = directory

    async def initialize(self):
        async with self._init_lock:
            if self._initialized:
                return

            self._loop = asyncio.get_running_loop()
            self._cwd = await self._loop.run_in_executor(None, os.getcwd)
            self._initialized = True

    async def log(
        self,
        entry: T | Log,
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if isinstance(entry, Log):
            log = entry

        else:
            log = Log.from_frame(entry, sys._getframe(1))

        if self._config.enabled(self._name, log.entry.level) is False:
            return

        if filter and filter(log.entry) is False:
            return

        if self._initialized is False:
            await self.initialize()

        filename, directory = split_log_path(path)
        filename = filename or self._default_logfile
        directory = (
            directory
            or self._default_log_directory
            or self._config.directory
        )

        if filename or directory:
            await self._write_json_line(
                log,
                self._to_logfile_path(filename, directory),
            )

        else:
            self._write_line(
                log,
                template or self._default_template or DEFAULT_TEMPLATE,
            )

    def _write_line(self, log: Log, template: str):
        stream = sys.stderr if self._config.output == StreamType.STDERR else sys.stdout

        stream.write(
            log.entry.to_template(
                template,
                context={
                    "filename": log.filename,
                    "function_name": log.function_name,
                    "line_number": log.line_number,
                    "thread_id": log.thread_id,
                    "timestamp": log.timestamp,
                },
            )
            + "\n"
        )
        stream.flush()

    async def _write_json_line(self, log: Log, logfile_path: str):
        async with self._file_locks[logfile_path]:
            if self._files.get(logfile_path) is None:
                await self._loop.run_in_executor(
                    None,
                    self._open_file,
                    logfile_path,
                )

            await self._loop.run_in_executor(
                None,
                self._append,
                log,
                logfile_path,
            )

    def _to_logfile_path(self, filename: str | None, directory: str | None):
        if filename is None:
            filename = f"{self._name}.log.json"

        if directory is None:
            directory = self._cwd

        return os.path.join(directory, filename)

    def _open_file(self, logfile_path: str):
        resolved_path = pathlib.Path(logfile_path).absolute().resolve()
        resolved_path.parent.mkdir(parents=True, exist_ok=True)

        self._files[logfile_path] = open(resolved_path, 'a')

    def _append(self, log: Log, logfile_path: str):
        logfile = self._files[logfile_path]

        logfile.write(msgspec.json.encode(log).decode() + "\n")
        logfile.flush()

    async def close(self):
        for logfile_path in list(self._files):
            async with self._file_locks[logfile_path]:
                logfile = self._files.pop(logfile_path)
                await self._loop.run_in_executor(None, logfile.close)

        self._initialized = False
