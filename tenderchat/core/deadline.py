from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class DeadlineExceededError(Exception):
    def __init__(self, seconds: float) -> None:
        super().__init__(f"Deadline of {seconds:g}s exceeded")
        self.seconds = seconds


async def run_with_deadline(awaitable: Awaitable[T], seconds: float) -> T:
    """Race ``awaitable`` against a timer and return its result.

    Both tasks are cancelled and awaited before this returns, whichever side
    wins, so a finished call never leaves a live timer behind and an expired
    timer never leaves the call running.
    """
    call = asyncio.ensure_future(awaitable)
    timer = asyncio.ensure_future(asyncio.sleep(seconds))
    try:
        done, _ = await asyncio.wait(
            {call, timer}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in (call, timer):
            if not task.done():
                task.cancel()
        await asyncio.gather(call, timer, return_exceptions=True)

    if call in done:
        return call.result()
    raise DeadlineExceededError(seconds)
