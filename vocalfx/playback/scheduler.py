"""
Real-time playback scheduler for live monitoring.

Mirrors the offline automation math: on (re)start at position p the sink gets
the curve value at p as starting pitch plus only the ramps still ahead, shifted
by -p * nominal_duration. Progress is advanced by a cooperative tick() driven by
whatever timer the host offers; each tick integrates the instantaneous rate at
the current progress (a discretized approximation, fine for a progress bar,
not for export timing).

Speed, curve or seek changes while playing restart the sink at the current
position instead of patching live automation. A live AutomationCurve is
re-snapshotted on every (re)start, so edits made while paused are heard on resume.
"""
import logging
import threading
import time
from enum import Enum
from typing import Callable, List, Optional, Protocol, Union

from vocalfx.automation.curve import AutomationCurve, CurveSnapshot, rate_factor
from vocalfx.automation.schedule import RampEvent, nominal_duration, ramp_schedule
from vocalfx.core.types import WaveformBuffer

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    STOPPED = "stopped"
    FINISHED = "finished"


class PlaybackSink(Protocol):
    """Audio output the scheduler drives (sound device, browser bridge, test double)."""

    def start(
        self,
        source: WaveformBuffer,
        offset_s: float,
        speed: float,
        initial_semitone: float,
        ramps: List[RampEvent],
    ) -> None:
        ...

    def stop(self) -> None:
        ...


def _as_snapshot(curve: Union[AutomationCurve, CurveSnapshot, None]) -> CurveSnapshot:
    if curve is None:
        return CurveSnapshot()
    if isinstance(curve, AutomationCurve):
        return curve.snapshot()
    return curve


class PlaybackScheduler:
    def __init__(
        self,
        source: WaveformBuffer,
        sink: PlaybackSink,
        curve: Union[AutomationCurve, CurveSnapshot, None] = None,
        speed: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.source = source
        self.sink = sink
        self.clock = clock
        self._curve_source = curve
        self._curve = _as_snapshot(curve)  # snapshot heard since the last (re)start
        self._speed = float(speed)
        self._progress = 0.0  # percent, 0..100
        self._state = PlaybackState.IDLE
        self._last_tick = 0.0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def curve(self) -> CurveSnapshot:
        return self._curve

    def instantaneous_rate(self, progress: Optional[float] = None) -> float:
        p = self._progress if progress is None else progress
        return self._speed * rate_factor(self._curve.evaluate(p / 100.0))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def start(self, position: Optional[float] = None) -> None:
        """Start (or restart) playback at position percent; defaults to the current progress."""
        with self._lock:
            if self._state == PlaybackState.PLAYING:
                self.sink.stop()
            pct = self._progress if position is None else max(0.0, min(100.0, float(position)))
            p = pct / 100.0
            nominal = nominal_duration(self.source.duration, self._speed)
            self._curve = _as_snapshot(self._curve_source)
            initial, ramps = ramp_schedule(self._curve, nominal, p)
            self.sink.start(
                self.source,
                offset_s=p * self.source.duration,
                speed=self._speed,
                initial_semitone=initial,
                ramps=ramps,
            )
            self._progress = pct
            self._state = PlaybackState.PLAYING
            self._last_tick = self.clock()
            logger.debug("playback start at %.1f%% (%d ramps ahead)", pct, len(ramps))

    def stop(self, reset: bool = False) -> None:
        with self._lock:
            if self._state == PlaybackState.PLAYING:
                self.sink.stop()
            self._state = PlaybackState.STOPPED
            if reset:
                self._progress = 0.0

    def toggle(self) -> None:
        """Pause when playing; otherwise resume, rewinding first if playback had finished."""
        with self._lock:
            if self._state == PlaybackState.PLAYING:
                self.stop()
            else:
                self.start(0.0 if self._progress >= 100.0 else self._progress)

    def tick(self) -> float:
        """Advance progress by the time since the last tick. Returns progress percent."""
        with self._lock:
            if self._state != PlaybackState.PLAYING:
                return self._progress
            now = self.clock()
            elapsed = max(0.0, now - self._last_tick)
            self._last_tick = now

            duration = self.source.duration
            if duration <= 0:
                self._progress = 100.0
            else:
                consumed = elapsed * self.instantaneous_rate() / duration * 100.0
                self._progress = min(100.0, self._progress + consumed)

            if self._progress >= 100.0:
                self._state = PlaybackState.FINISHED
                logger.debug("playback finished")
            return self._progress

    # ------------------------------------------------------------------
    # Live changes: restart-on-change
    # ------------------------------------------------------------------

    def set_speed(self, speed: float) -> None:
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        with self._lock:
            self._speed = float(speed)
            self._restart_if_playing()

    def set_curve(self, curve: Union[AutomationCurve, CurveSnapshot, None]) -> None:
        with self._lock:
            self._curve_source = curve
            self._curve = _as_snapshot(curve)
            self._restart_if_playing()

    def seek(self, position: float) -> None:
        with self._lock:
            self._progress = max(0.0, min(100.0, float(position)))
            self._restart_if_playing()

    def _restart_if_playing(self) -> None:
        if self._state == PlaybackState.PLAYING:
            self.start(self._progress)
