from .logger_stream import LoggerStream, split_log_path


class LoggerContext:
    """
    Named stream plus its defaults. Entering initializes the stream;
    leaving closes it unless the context is nested in a longer-lived one.
    """

    def __init__(
        self,
        name: str,
        template: str | None = None,
        path: str | None = None,
        nested: bool = False,
    ) -> None:
        filename, directory = split_log_path(path)

        self.name = name
        self.nested = nested
        self.stream = LoggerStream(
            name=name,
            template=template,
            filename=filename,
            directory=directory,
        )

    def reconfigure(
        self,
        template: str | None = None,
        path: str | None = None,
        nested: bool = False,
    ):
        filename, directory = split_log_path(path)

        self.stream.set_defaults(
            template=template,
            filename=filename,
            directory=directory,
        )
        self.nested = nested

    async def __aenter__(self) -> LoggerStream:
        await self.stream.initialize()
        return self.stream

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.nested is False:
            await self.stream.close()
