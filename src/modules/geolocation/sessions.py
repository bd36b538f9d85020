"""Cancel-and-replace handling for repeated submissions from one session."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from src.modules.geolocation.errors import SubmissionSuperseded
from src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SubmissionRegistry:
    """Tracks the in-flight pipeline task per session id.

    A new submission cancels the previous task for the same session; the
    superseded caller gets SubmissionSuperseded instead of a result.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}
        self._superseded: set[asyncio.Task] = set()

    def in_flight(self, session_id: str) -> bool:
        task = self._tasks.get(session_id)
        return task is not None and not task.done()

    async def run(self, session_id: str | None, work: Awaitable[T]) -> T:
        if session_id is None:
            return await work

        previous = self._tasks.get(session_id)
        if previous is not None and not previous.done():
            logger.info("submission_superseded", session_id=session_id)
            self._superseded.add(previous)
            previous.cancel()

        task = asyncio.ensure_future(work)
        self._tasks[session_id] = task
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._superseded:
                raise SubmissionSuperseded(session_id) from None
            raise
        finally:
            self._superseded.discard(task)
            if self._tasks.get(session_id) is task:
                del self._tasks[session_id]
