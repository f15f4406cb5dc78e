"""Adaptive re-polling for the now-playing widget.

Instead of polling on a fixed interval, the widget schedules its next check
for just after the current track should end (capped at 30s), and falls back
to a slow 60s poll while nothing is playing. Nothing is scheduled while the
page is hidden.

The scheduler only needs something with ``call_later(seconds, callback)``
returning a handle with ``cancel()``; an asyncio event loop works, and so
does ``TimerQueue`` below, which the Streamlit widget drives by hand.
"""
from __future__ import annotations

import time
from enum import Enum
from functools import partial
from typing import Callable, Optional, Protocol

from portfolio_spotify.logger import default_logger
from portfolio_spotify.models import Stats, Track


TRACK_END_BUFFER_MS = 2000
MAX_TRACK_WAIT_MS = 30000
UNKNOWN_DURATION_MS = 30000
IDLE_POLL_MS = 60000
# Track-end checks are never armed sooner than this
MIN_CHECK_DELAY_MS = TRACK_END_BUFFER_MS

logger = default_logger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timers(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class PollerState(str, Enum):
    IDLE = "idle"
    WAITING_FOR_TRACK_END = "waiting_for_track_end"
    POLLING_IDLE_PERIOD = "polling_idle_period"


def next_check_delay_ms(track: Track) -> int:
    """Milliseconds until the next check for a playing track."""
    duration = track.duration_ms or 0
    progress = track.progress_ms or 0
    remaining = duration - progress if duration > 0 else UNKNOWN_DURATION_MS
    return max(MIN_CHECK_DELAY_MS, min(remaining + TRACK_END_BUFFER_MS, MAX_TRACK_WAIT_MS))


def resolve_track_check(current: Track, fetched: Optional[Track]) -> Optional[Track]:
    """What to display after re-checking a track that was playing."""
    if fetched is None:
        return None
    if fetched.id != current.id:
        return fetched
    if not fetched.is_playing:
        return None
    # Same song, still going: keep the fresh progress so the next check lines up
    return fetched


def resolve_idle_check(current: Optional[Track], fetched: Optional[Track]) -> Optional[Track]:
    """What to display after an idle-period check; only playback starting counts."""
    if fetched is not None and fetched.is_playing:
        return fetched
    return current


class _QueuedTimer:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class TimerQueue:
    """Cooperative, single-threaded timers run explicitly with ``run_due``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._timers: list[_QueuedTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _QueuedTimer:
        timer = _QueuedTimer(self._clock() + delay, callback)
        self._timers.append(timer)
        return timer

    def pending(self) -> list[_QueuedTimer]:
        return [t for t in self._timers if not t.cancelled]

    def next_due(self) -> Optional[float]:
        pending = self.pending()
        return min(t.due for t in pending) if pending else None

    def run_due(self) -> int:
        now = self._clock()
        due = sorted((t for t in self.pending() if t.due <= now), key=lambda t: t.due)
        self._timers = [t for t in self._timers if not t.cancelled and t.due > now]
        fired = 0
        for timer in due:
            # an earlier callback may have cancelled this one
            if timer.cancelled:
                continue
            timer.callback()
            fired += 1
        return fired


class AdaptivePoller:
    """Keeps the widget's now-playing state fresh.

    States: IDLE (nothing armed: hidden, stopped or not started),
    WAITING_FOR_TRACK_END (one-shot check after the current track),
    POLLING_IDLE_PERIOD (60s checks for playback starting). Each transition
    cancels the armed timer before arming the next, so at most one is live.
    """

    def __init__(
        self,
        fetch_now_playing: Callable[[], Optional[Track]],
        fetch_stats: Callable[[], Optional[Stats]],
        timers: Timers,
        visible: bool = True,
        on_change: Optional[Callable[["AdaptivePoller"], None]] = None,
    ):
        self._fetch_now_playing = fetch_now_playing
        self._fetch_stats = fetch_stats
        self._timers = timers
        self._visible = visible
        self._on_change = on_change
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._mounted = False

        self.current: Optional[Track] = None
        self.stats: Optional[Stats] = None
        self.loading = True
        self.state = PollerState.IDLE

    @property
    def visible(self) -> bool:
        return self._visible

    def start(self) -> None:
        """Mount: load both branches once, then start scheduling."""
        self._mounted = True
        self.loading = True
        self.current = self._safe_fetch(self._fetch_now_playing, "now-playing")
        self.stats = self._safe_fetch(self._fetch_stats, "stats")
        self.loading = False
        self._notify()
        self._arm()

    def stop(self) -> None:
        """Unmount: nothing fires after this."""
        self._mounted = False
        self._arm()

    def set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        self._arm()

    def _safe_fetch(self, fetch, label: str):
        try:
            return fetch()
        except Exception as exc:
            logger.warning("Initial %s fetch failed: %s", label, exc)
            return None

    def _cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self) -> None:
        self._cancel()
        if not self._mounted or not self._visible:
            self.state = PollerState.IDLE
            return

        generation = self._generation
        if self.current is not None and self.current.is_playing:
            self.state = PollerState.WAITING_FOR_TRACK_END
            delay_ms = next_check_delay_ms(self.current)
            check = self._check_track
        else:
            self.state = PollerState.POLLING_IDLE_PERIOD
            delay_ms = IDLE_POLL_MS
            check = self._check_idle
        logger.debug("Next now-playing check in %d ms (%s)", delay_ms, self.state.value)
        self._handle = self._timers.call_later(delay_ms / 1000, partial(self._fire, generation, check))

    def _fire(self, generation: int, check: Callable[[Optional[Track]], Optional[Track]]) -> None:
        if generation != self._generation or not self._mounted or not self._visible:
            return
        self._handle = None
        try:
            fetched = self._fetch_now_playing()
        except Exception as exc:
            logger.warning("now-playing poll failed: %s", exc)
            self._arm()
            return
        self.current = check(fetched)
        self._notify()
        self._arm()

    def _check_track(self, fetched: Optional[Track]) -> Optional[Track]:
        return resolve_track_check(self.current, fetched)

    def _check_idle(self, fetched: Optional[Track]) -> Optional[Track]:
        return resolve_idle_check(self.current, fetched)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
