import asyncio
from typing import Awaitable, Callable, TypeVar

from .range_service import ExternalRangeService, RangeTransaction


T = TypeVar('T')


async def run_transactional(
    service: ExternalRangeService,
    operation: Callable[[RangeTransaction], Awaitable[T]],
) -> T:
    """
    Run ``operation`` inside a service transaction until it completes
    without a retryable conflict.

    ``RangeTransaction.on_error`` decides what is retryable: it backs off
    and returns for conflicts and re-raises everything else, so non-retryable
    errors propagate to the caller unchanged.
    """
    transaction = service.create_transaction()

    while True:
        try:
            return await operation(transaction)

        except asyncio.CancelledError:
            raise

        except Exception as error:
            await transaction.on_error(error)
