"""Single-flight request tracking with cancellation."""

from __future__ import annotations

import asyncio
import itertools
import threading
from typing import Optional


class RequestTicket:
    """Handle for one outbound request, backed by the asyncio task running it."""

    def __init__(self, sequence: int) -> None:
        self.sequence = sequence
        self.superseded = False
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def attach(self, task: asyncio.Task) -> None:
        """Bind the task carrying this request so cancel() can abort it."""
        with self._lock:
            self._task = task
        if self.cancelled:
            self._abort(task)

    def cancel(self) -> None:
        """Mark the ticket cancelled and abort its task, if any."""
        self._cancelled.set()
        with self._lock:
            task = self._task
        if task is not None:
            self._abort(task)

    async def drained(self) -> None:
        """Wait until this ticket's task has finished unwinding (connection closed)."""
        with self._lock:
            task = self._task
        if task is None or task.done() or task.get_loop() is not asyncio.get_running_loop():
            return
        await asyncio.wait([task])

    @staticmethod
    def _abort(task: asyncio.Task) -> None:
        if task.done():
            return
        loop = task.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task.cancel()
        else:
            # called from a Gradio worker thread
            loop.call_soon_threadsafe(task.cancel)

    def __repr__(self) -> str:
        return f"RequestTicket(sequence={self.sequence}, cancelled={self.cancelled})"


class RequestController:
    """Allow at most one active request; starting a new one cancels the previous."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._active: Optional[RequestTicket] = None

    @property
    def active(self) -> Optional[RequestTicket]:
        return self._active

    def begin(self) -> RequestTicket:
        """Cancel the active ticket (if any) and return a fresh one."""
        with self._lock:
            previous = self._active
            ticket = RequestTicket(next(self._counter))
            self._active = ticket
        if previous is not None:
            previous.superseded = True
            previous.cancel()
        return ticket

    def cancel(self) -> Optional[RequestTicket]:
        """Cancel and release the active ticket without starting a new one."""
        with self._lock:
            ticket = self._active
            self._active = None
        if ticket is not None:
            ticket.cancel()
        return ticket

    def is_current(self, ticket: RequestTicket) -> bool:
        with self._lock:
            return self._active is ticket

    def finish(self, ticket: RequestTicket) -> None:
        """Release the active slot if ``ticket`` still owns it."""
        with self._lock:
            if self._active is ticket:
                self._active = None
