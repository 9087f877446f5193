import asyncio
import inspect
import logging
from functools import lru_cache
from typing import Any, Callable, Optional

from ..models.session import TimerState
from .config import get_settings

log = logging.getLogger(__name__)

TickCallback = Callable[[int], Any]
ExpireCallback = Callable[[], Any]


def format_remaining(seconds: int) -> str:
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{secs:02d}"


class StepTimer:
    """
    Single countdown for the step being cooked.

    Starting a timer cancels the one already running. ``on_tick`` gets the
    seconds left after every tick while more than zero remain, then
    ``on_expire`` fires once and the timer is idle again. Callbacks may be
    plain functions or coroutine functions.
    """

    def __init__(self, tick_seconds: Optional[float] = None):
        if tick_seconds is None:
            tick_seconds = get_settings().timer_tick_seconds
        self.tick_seconds = tick_seconds
        self.task: Optional[asyncio.Task] = None
        self._state: Optional[TimerState] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    @property
    def state(self) -> Optional[TimerState]:
        return self._state.model_copy() if self._state else None

    def start(
        self,
        minutes: int,
        on_tick: Optional[TickCallback] = None,
        on_expire: Optional[ExpireCallback] = None,
    ) -> bool:
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise TypeError(f"timer minutes must be an int, got {type(minutes).__name__}")
        if minutes <= 0:
            log.warning("Ignoring timer start with %d minutes", minutes)
            return False

        self.stop()
        total = minutes * 60
        state = TimerState(total_seconds=total, remaining_seconds=total, running=True)
        self._state = state
        self.task = asyncio.get_running_loop().create_task(
            self._countdown(state, on_tick, on_expire)
        )
        log.info("Timer started for %d minutes", minutes)
        return True

    def stop(self) -> bool:
        task, self.task = self.task, None
        if task is None or task.done():
            return False
        task.cancel()
        if self._state is not None:
            self._state.running = False
            log.info("Timer stopped with %d seconds left", self._state.remaining_seconds)
        return True

    async def _countdown(
        self,
        state: TimerState,
        on_tick: Optional[TickCallback],
        on_expire: Optional[ExpireCallback],
    ) -> None:
        while state.remaining_seconds > 0:
            await asyncio.sleep(self.tick_seconds)
            state.remaining_seconds -= 1
            if state.remaining_seconds > 0 and on_tick is not None:
                await self._call(on_tick, state.remaining_seconds)

        # detach first so stop() from inside on_expire is a no-op
        state.running = False
        if self.task is asyncio.current_task():
            self.task = None
        log.info("Timer finished after %d seconds", state.total_seconds)
        if on_expire is not None:
            await self._call(on_expire)

    async def _call(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            log.exception("Timer callback %r failed", callback)


@lru_cache()
def get_step_timer() -> StepTimer:
    """Return the process-wide step timer."""
    return StepTimer()
