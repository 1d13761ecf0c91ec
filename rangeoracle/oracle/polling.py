import asyncio
import time
from typing import Awaitable, Callable, TypeVar

from rangeoracle.errors import ConvergenceTimeout


T = TypeVar('T')


async def poll_until(
    observe: Callable[[], Awaitable[T]],
    accept: Callable[[T], bool],
    interval: float = 1.0,
    timeout: float | None = None,
    describe: str = "condition",
    on_retry: Callable[[T, int], Awaitable[None]] | None = None,
) -> T:
    """
    Call ``observe`` until ``accept`` returns True for its result.

    Sleeps ``interval`` seconds between attempts. When ``timeout`` is set
    and elapses before the result is accepted, raises ConvergenceTimeout with
    the last observed result and attempt count.
    """
    start = time.monotonic()
    attempts = 0

    while True:
        result = await observe()
        attempts += 1

        if accept(result):
            return result

        elapsed = time.monotonic() - start
        if timeout is not None and elapsed + interval > timeout:
            raise ConvergenceTimeout(
                f"Timed out waiting for {describe}",
                attempts=attempts,
                elapsed=f"{elapsed:.2f}s",
                timeout=f"{timeout:.2f}s",
                last_result=result,
            )

        if on_retry is not None:
            await on_retry(result, attempts)

        await asyncio.sleep(interval)
