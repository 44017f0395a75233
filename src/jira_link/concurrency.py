"""Per-issue fan-out helpers."""

import asyncio
from typing import Awaitable, Iterable, List, TypeVar

T = TypeVar("T")


async def gather_all(aws: Iterable[Awaitable[T]]) -> List[T]:
    """Run awaitables concurrently and wait for every one of them.

    Unlike a bare ``asyncio.gather``, a failing task does not leave its
    siblings running unobserved: all tasks complete first, then the first
    exception in submission order is re-raised.

    Returns:
        Results in submission order.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
