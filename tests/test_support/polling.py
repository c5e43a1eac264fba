from __future__ import annotations

from typing import Awaitable, Callable

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_delay, wait_fixed


async def await_until_asserted(
    assertion: Callable[[], Awaitable[None]],
    *,
    timeout: float = 10,
    interval: float = 3,
) -> None:
    """
    Re-runs an async assertion every `interval` seconds until it passes.
    The last AssertionError is raised once `timeout` seconds have gone by.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(AssertionError),
        reraise=True,
    ):
        with attempt:
            await assertion()
