"""
Cooperative countdown for a test session
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from eduprep.client.session import TestSession

logger = logging.getLogger(__name__)


class SessionTimer:
    """
    Calls ``session.tick()`` once per interval while the attempt is in progress

    The task is bound to the attempt that was running when ``start`` was
    called and is cancelled as soon as that attempt leaves IN_PROGRESS.
    """

    def __init__(
        self,
        session: TestSession,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.session = session
        self.interval = interval
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self._attempt: Optional[int] = None
        session.on_exit(self._on_session_exit)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule the countdown on the running event loop"""
        if self.running:
            return self._task

        self._attempt = self.session.attempt
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def stop(self) -> None:
        if self.running:
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the countdown to finish or be cancelled"""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while self._still_current():
            await self._sleep(self.interval)
            if not self._still_current():
                break
            self.session.tick()
        logger.debug(f"Timer for attempt {self._attempt} finished")

    def _still_current(self) -> bool:
        return self.session.in_progress and self.session.attempt == self._attempt

    def _on_session_exit(self, session: TestSession) -> None:
        if not self.running:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # Runs inside tick() when time is up; the loop exits on its own then
        if current is not self._task:
            self._task.cancel()
