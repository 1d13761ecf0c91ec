import asyncio
import random


class PoissonPacer:
    """
    Paces a loop as a Poisson arrival process with ``rate`` arrivals per
    second.

    ``schedule_next()`` is called before an operation starts and
    ``wait()`` after it finishes, so slow operations eat into the gap
    before the next arrival rather than adding to it.
    """

    def __init__(self, rate: float, rng: random.Random) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")

        self.rate = rate
        self._random = rng
        self._loop: asyncio.AbstractEventLoop | None = None
        self._last: float | None = None

    def schedule_next(self) -> float:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        if self._last is None:
            self._last = self._loop.time()

        self._last += self._random.expovariate(self.rate)
        return self._last

    async def wait(self) -> None:
        if self._last is None:
            return

        delay = self._last - self._loop.time()
        await asyncio.sleep(max(delay, 0.0))
