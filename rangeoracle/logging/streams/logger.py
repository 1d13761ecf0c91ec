import asyncio
import sys
from typing import (
    Callable,
    Dict,
    TypeVar,
)

from rangeoracle.logging.models import Entry, Log

from .logger_context import LoggerContext

T = TypeVar('T', bound=Entry)


class Logger:
    """
    Async structured logger. Each entry goes to a named context whose
    stream renders it to stdout/stderr, or appends it as a JSON line when
    a log path or directory is configured.
    """

    def __init__(self) -> None:
        self._contexts: Dict[str, LoggerContext] = {}

    def context(
        self,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
        nested: bool = False,
    ) -> LoggerContext:
        context = self._contexts.get(name)

        if context is None:
            context = LoggerContext(
                name=name,
                template=template,
                path=path,
                nested=nested,
            )
            self._contexts[name] = context

        else:
            context.reconfigure(
                template=template,
                path=path,
                nested=nested,
            )

        return context

    async def log(
        self,
        entry: T,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        log = Log.from_frame(entry, sys._getframe(1))

        async with self.context(name=name, nested=True) as stream:
            await stream.log(
                log,
                template=template,
                path=path,
                filter=filter,
            )

    async def close(self):
        if len(self._contexts) > 0:
            await asyncio.gather(*[
                context.stream.close() for context in self._contexts.values()
            ])
