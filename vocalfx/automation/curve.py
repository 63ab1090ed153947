"""
Pitch automation curve: control points (normalized time, semitones) evaluated as
a piecewise-linear function of time.

The editable AutomationCurve is owned by the editing surface. Renderers and the
playback scheduler only ever read a CurveSnapshot (immutable, sorted tuple), so
an edit can never be observed half-applied by an in-flight render.
"""
import threading
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

TIME_MIN, TIME_MAX = 0.0, 1.0
SEMITONE_MIN, SEMITONE_MAX = -12.0, 12.0


def rate_factor(semitones: float) -> float:
    """Playback-rate multiplier for a pitch offset: 2 ** (semitones / 12)."""
    return 2.0 ** (semitones / 12.0)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


def _new_id() -> str:
    return f"pt_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class CurvePoint:
    id: str
    time: float  # 0..1, normalized against nominal duration
    semitone: float  # -12..12


def evaluate(points: Sequence[CurvePoint], t: float) -> float:
    """
    Semitone value at normalized time t.
    Empty -> 0. Before the first point / after the last -> that point's value.
    Between points -> linear interpolation of the bracketing pair.
    """
    if not points:
        return 0.0
    ordered = sorted(points, key=lambda p: p.time)
    first, last = ordered[0], ordered[-1]
    if t <= first.time:
        return first.semitone
    if t >= last.time:
        return last.semitone
    for p1, p2 in zip(ordered, ordered[1:]):
        if p1.time <= t <= p2.time:
            span = p2.time - p1.time
            if span <= 0.0:
                return p2.semitone
            ratio = (t - p1.time) / span
            return p1.semitone + ratio * (p2.semitone - p1.semitone)
    return last.semitone


@dataclass(frozen=True)
class CurveSnapshot:
    """Immutable, time-sorted copy of a curve taken when a render or playback starts."""
    points: Tuple[CurvePoint, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(sorted(self.points, key=lambda p: p.time)))

    def evaluate(self, t: float) -> float:
        return evaluate(self.points, t)

    @property
    def min_semitone(self) -> float:
        """Lowest value on the curve; 0 for an empty curve."""
        return min((p.semitone for p in self.points), default=0.0)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "CurveSnapshot":
        """Build from (time, semitone) pairs, clamping both to their ranges."""
        return cls(tuple(
            CurvePoint(_new_id(), _clamp(t, TIME_MIN, TIME_MAX), _clamp(s, SEMITONE_MIN, SEMITONE_MAX))
            for t, s in pairs
        ))

    @classmethod
    def from_points(cls, raw) -> "CurveSnapshot":
        """
        Build from request data: [{"time": t, "semitone": s}, ...] or [[t, s], ...].
        Raises ValueError on a malformed point.
        """
        if raw is None:
            raw = ()
        if not isinstance(raw, (list, tuple)):
            raise ValueError(f"curve must be a list of points, got {type(raw).__name__}")
        pairs = []
        for point in raw:
            try:
                if isinstance(point, dict):
                    pairs.append((float(point["time"]), float(point["semitone"])))
                else:
                    t, s = point
                    pairs.append((float(t), float(s)))
            except (KeyError, TypeError, ValueError):
                raise ValueError(f"invalid curve point: {point!r}")
        return cls.from_pairs(pairs)

    def to_list(self) -> List[dict]:
        return [{"id": p.id, "time": p.time, "semitone": p.semitone} for p in self.points]


# -----------------------------------------------------------------------------
# Edit commands (what a drag/click on the editor turns into)
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Insert:
    time: float
    semitone: float


@dataclass(frozen=True)
class Move:
    id: str
    time: float
    semitone: float


@dataclass(frozen=True)
class Delete:
    id: str


Command = Union[Insert, Move, Delete]


class AutomationCurve:
    """
    Editable curve. Every mutation re-sorts under a lock, so evaluate() and
    snapshot() always see time-ordered points.
    """

    def __init__(self, points: Optional[Iterable[Tuple[float, float]]] = None):
        self._lock = threading.Lock()
        self._points: Tuple[CurvePoint, ...] = ()
        for t, s in points or ():
            self.insert(t, s)

    def _store(self, points: Iterable[CurvePoint]) -> None:
        self._points = tuple(sorted(points, key=lambda p: p.time))

    def insert(self, time: float, semitone: float) -> str:
        point = CurvePoint(_new_id(), _clamp(time, TIME_MIN, TIME_MAX), _clamp(semitone, SEMITONE_MIN, SEMITONE_MAX))
        with self._lock:
            self._store(self._points + (point,))
        return point.id

    def move(self, point_id: str, time: float, semitone: float) -> None:
        moved = CurvePoint(point_id, _clamp(time, TIME_MIN, TIME_MAX), _clamp(semitone, SEMITONE_MIN, SEMITONE_MAX))
        with self._lock:
            if not any(p.id == point_id for p in self._points):
                raise KeyError(point_id)
            self._store(moved if p.id == point_id else p for p in self._points)

    def delete(self, point_id: str) -> None:
        with self._lock:
            remaining = tuple(p for p in self._points if p.id != point_id)
            if len(remaining) == len(self._points):
                raise KeyError(point_id)
            self._points = remaining

    def apply(self, command: Command) -> Optional[str]:
        """Apply an edit command. Returns the new point id for Insert."""
        if isinstance(command, Insert):
            return self.insert(command.time, command.semitone)
        if isinstance(command, Move):
            self.move(command.id, command.time, command.semitone)
            return None
        if isinstance(command, Delete):
            self.delete(command.id)
            return None
        raise TypeError(f"unknown curve command: {command!r}")

    def snapshot(self) -> CurveSnapshot:
        with self._lock:
            return CurveSnapshot(self._points)

    @property
    def points(self) -> Tuple[CurvePoint, ...]:
        return self.snapshot().points

    def evaluate(self, t: float) -> float:
        return self.snapshot().evaluate(t)

    def __len__(self) -> int:
        return len(self._points)
