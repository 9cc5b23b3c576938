import asyncio
from typing import Any, Awaitable, Coroutine, Iterable, List, TypeVar

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout: float) -> T:
    """
    Awaits `awaitable`, abandoning it after `timeout` seconds.
    Raises asyncio.TimeoutError on expiry; the caller decides whether that is a skip.
    """
    return await asyncio.wait_for(awaitable, timeout=timeout)


async def gather_settled(tasks: Iterable[Coroutine[Any, Any, T]]) -> List[T | BaseException]:
    """
    Runs all coroutines concurrently and collects every outcome.
    Failures are returned in place of results rather than raised.
    """
    return await asyncio.gather(*tasks, return_exceptions=True)
