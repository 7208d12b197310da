"""Single-flight refresh cycle driven by a once-per-second countdown."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from roster_watch.errors import RosterWatchError
from roster_watch.models.roster import Metrics, PlayerRecord
from roster_watch.models.shifts import ShiftMap
from roster_watch.models.view import RefreshStatus
from roster_watch.services.roster_client import RosterClient
from roster_watch.services.shift_cache import ShiftCache
from roster_watch.services.view_state import ViewState

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30
TICK_SECONDS = 1.0

Listener = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class SchedulerState:
    """Countdown and phase of the refresh state machine."""

    interval: int
    countdown: int
    phase: RefreshStatus = RefreshStatus.IDLE  # IDLE or LOADING
    last_outcome: RefreshStatus | None = None
    cycles: int = 0
    dropped_triggers: int = 0

    @property
    def loading(self) -> bool:
        return self.phase == RefreshStatus.LOADING


class RefreshScheduler:
    """Runs refresh cycles: IDLE -> LOADING -> SUCCESS/DEGRADED/FAILED -> IDLE.

    Only one cycle is ever in flight. A trigger arriving while LOADING is
    dropped. Every finished cycle resets the countdown, whatever its outcome.
    """

    def __init__(
        self,
        roster_client: RosterClient,
        shift_cache: ShiftCache,
        view_state: ViewState,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the scheduler.

        Args:
            roster_client: Source of players and metrics
            shift_cache: Source of the shift map
            view_state: Snapshot holder; this scheduler is its only writer
            interval_seconds: Countdown length between automatic refreshes
            sleep: Coroutine used for the tick delay (seconds)
            clock: Wall clock used to stamp successful refreshes
        """
        self.roster_client = roster_client
        self.shift_cache = shift_cache
        self.view_state = view_state
        self.state = SchedulerState(interval=interval_seconds, countdown=interval_seconds)
        self._sleep = sleep
        self._clock = clock
        self._listeners: list[Listener] = []
        self._task: Optional[asyncio.Task] = None
        self._pending: set[asyncio.Task] = set()

    # Listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register an event listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.warning(f"Dashboard listener failed on {event.get('type')}: {e}")

    # Refresh cycle

    def _try_begin(self, reason: str) -> bool:
        """Enter LOADING unless a cycle is already in flight."""
        if self.state.loading:
            self.state.dropped_triggers += 1
            logger.debug(f"Refresh already in progress, ignoring {reason} trigger")
            return False
        self.state.phase = RefreshStatus.LOADING
        return True

    async def _fetch_metrics(self) -> Metrics:
        try:
            return await self.roster_client.fetch_metrics()
        except RosterWatchError as e:
            logger.warning(f"Metrics unavailable, using defaults: {e}")
            return Metrics.unavailable(len(self.view_state.snapshot.players))

    async def _fetch_sources(self) -> tuple[list[PlayerRecord], Metrics, ShiftMap]:
        """Fetch players, metrics and shifts concurrently.

        The first failure cancels and awaits the fetches still in flight.
        """
        tasks = [
            asyncio.create_task(self.roster_client.fetch_players()),
            asyncio.create_task(self._fetch_metrics()),
            asyncio.create_task(self.shift_cache.get_shift_map()),
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()
        players, metrics, shift_map = (task.result() for task in tasks)
        return players, metrics, shift_map

    async def _run_cycle(self, reason: str) -> RefreshStatus:
        await self._emit({"type": "refresh_started", "reason": reason})
        outcome = RefreshStatus.FAILED
        try:
            players, metrics, shift_map = await self._fetch_sources()
            self.view_state.publish_success(players, metrics, shift_map, self._clock())
            outcome = RefreshStatus.SUCCESS
            logger.info(f"Refresh ({reason}) loaded {len(players)} players")
        except Exception as e:
            logger.error(f"Refresh ({reason}) failed: {type(e).__name__}: {e}")
            outcome = self.view_state.publish_failure(f"{type(e).__name__}: {e}").status
            # Recovery cycle re-fetches shift data alongside the roster
            self.shift_cache.invalidate()
        finally:
            self.state.countdown = self.state.interval
            self.state.phase = RefreshStatus.IDLE
            self.state.last_outcome = outcome
            self.state.cycles += 1

        await self._emit({"type": "refresh_complete", "reason": reason, "status": outcome.value})
        return outcome

    async def refresh(self, reason: str = "manual") -> Optional[RefreshStatus]:
        """Run one refresh cycle now.

        Returns:
            The cycle outcome, or None if a cycle was already in flight
        """
        if not self._try_begin(reason):
            return None
        return await self._run_cycle(reason)

    def request_refresh(self, reason: str = "manual") -> bool:
        """Schedule a refresh on the running loop without waiting for it.

        Returns:
            False if a cycle was already in flight (the trigger is dropped)
        """
        if not self._try_begin(reason):
            return False
        task = asyncio.create_task(self._run_cycle(reason))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    # Countdown

    async def tick(self) -> None:
        """Advance the countdown by one second; refresh when it reaches zero."""
        if self.state.loading:
            return
        self.state.countdown -= 1
        await self._emit({"type": "tick", "countdown": self.state.countdown})
        if self.state.countdown <= 0:
            await self.refresh("countdown")

    async def _run(self) -> None:
        await self.refresh("startup")
        while True:
            await self._sleep(TICK_SECONDS)
            try:
                await self.tick()
            except Exception as e:
                logger.exception(f"Countdown tick failed: {e}")

    def start(self) -> asyncio.Task:
        """Start the initial refresh and countdown loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info(f"Auto-refresh started, interval {self.state.interval}s")
        return self._task

    async def stop(self) -> None:
        """Cancel the countdown loop and any scheduled manual refresh."""
        tasks = [t for t in [self._task, *self._pending] if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def status(self) -> dict[str, Any]:
        return {
            "phase": self.state.phase.value,
            "countdown": self.state.countdown,
            "interval": self.state.interval,
            "last_outcome": self.state.last_outcome.value if self.state.last_outcome else None,
            "cycles": self.state.cycles,
            "dropped_triggers": self.state.dropped_triggers,
            "running": self.running,
        }
