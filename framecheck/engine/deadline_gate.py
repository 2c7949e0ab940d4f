"""Deadline Gate

Cancellable wait used by the orchestration flow: resolves when a predicate
becomes true or when a deadline passes, whichever happens first.

The predicate is re-checked whenever notify() is called (typically from the
capture thread after every collector append) and, as a fallback, every
poll_interval seconds. The deadline is a separate timer task; the two are
raced with asyncio.wait and the loser is cancelled and awaited before
wait() returns, so no stale wake-up can leak into a later wait.
"""

import asyncio
import logging
from typing import Callable, Optional

from framecheck.config.config_loader import config


logger = logging.getLogger(__name__)


class GateBusyError(Exception):
    """Raised when wait() is called while the gate is already waiting"""
    pass


class DeadlineGate:
    """Predicate-or-deadline wait primitive.
    
    Attributes:
        poll_interval: Fallback predicate re-check period in seconds
        wakeups: Number of notify() calls delivered to the active wait
    """
    
    def __init__(self, poll_interval: Optional[float] = None):
        self.poll_interval = poll_interval if poll_interval is not None else \
            config.get('gate.poll_interval', 0.1)
        self.wakeups: int = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._event: Optional[asyncio.Event] = None
    
    @property
    def waiting(self) -> bool:
        return self._event is not None
    
    def notify(self) -> None:
        """Ask the active wait to re-check its predicate.
        
        Safe to call from any thread, and a no-op when nothing is waiting.
        """
        loop, event = self._loop, self._event
        if loop is None or event is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._wake, event)
        except RuntimeError:
            # loop closed between the check and the call
            pass
    
    def _wake(self, event: asyncio.Event) -> None:
        # event belongs to a finished wait; ignore
        if event is not self._event:
            return
        self.wakeups += 1
        event.set()
    
    async def wait(self, predicate: Callable[[], bool], timeout: float,
                   on_wake: Optional[Callable[[], None]] = None) -> bool:
        """Wait until predicate() is true or timeout seconds elapse.
        
        Args:
            predicate: Condition to wait for; must be cheap and non-blocking
            timeout: Deadline in seconds
            on_wake: Called on the event loop every time the predicate is re-checked
            
        Returns:
            True if the predicate was satisfied first, False on timeout
            
        Raises:
            GateBusyError: If this gate is already waiting
        """
        if self._event is not None:
            raise GateBusyError("DeadlineGate is already waiting")
        
        self._loop = asyncio.get_running_loop()
        self._event = asyncio.Event()
        
        watcher = asyncio.ensure_future(self._watch(predicate, self._event, on_wake))
        timer = asyncio.ensure_future(asyncio.sleep(max(0.0, timeout)))
        try:
            await asyncio.wait({watcher, timer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (watcher, timer):
                if not task.done():
                    task.cancel()
            await asyncio.gather(watcher, timer, return_exceptions=True)
            self._event = None
            self._loop = None
        
        if watcher.done() and not watcher.cancelled():
            # re-raise predicate errors
            satisfied = watcher.result()
        else:
            satisfied = False
        
        if not satisfied:
            logger.debug(f"DeadlineGate timed out after {timeout:.2f}s")
        return satisfied
    
    async def _watch(self, predicate: Callable[[], bool], event: asyncio.Event,
                     on_wake: Optional[Callable[[], None]]) -> bool:
        while True:
            if on_wake is not None:
                on_wake()
            if predicate():
                return True
            event.clear()
            try:
                await asyncio.wait_for(event.wait(), self.poll_interval)
            except asyncio.TimeoutError:
                pass
