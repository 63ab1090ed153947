"""
Tests for vocalfx/playback/scheduler with a recording sink and a manual clock.
Run from project root: python -m pytest tests/test_scheduler.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from vocalfx.automation.curve import AutomationCurve, CurveSnapshot
from vocalfx.automation.schedule import RampEvent
from vocalfx.core.types import WaveformBuffer
from vocalfx.playback.scheduler import PlaybackScheduler, PlaybackState

SR = 24000


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingSink:
    def __init__(self):
        self.starts = []
        self.stops = 0

    def start(self, source, offset_s, speed, initial_semitone, ramps):
        self.starts.append({
            "offset_s": offset_s,
            "speed": speed,
            "initial": initial_semitone,
            "ramps": list(ramps),
        })

    def stop(self):
        self.stops += 1


def _scheduler(curve=None, speed=1.0, seconds=2.0):
    clock = ManualClock()
    sink = RecordingSink()
    source = WaveformBuffer.silence(1, int(seconds * SR), SR)
    return PlaybackScheduler(source, sink, curve=curve, speed=speed, clock=clock), sink, clock


OCTAVE_DOWN = CurveSnapshot.from_pairs([(0.0, 0.0), (1.0, -12.0)])


def test_start_from_beginning_schedules_whole_curve():
    scheduler, sink, _ = _scheduler(OCTAVE_DOWN)
    scheduler.start(0.0)
    assert scheduler.state == PlaybackState.PLAYING
    call = sink.starts[-1]
    assert call["offset_s"] == 0.0
    assert call["initial"] == 0.0
    assert call["ramps"] == [RampEvent(2.0, -12.0)]


def test_start_mid_curve_shifts_remaining_ramps():
    scheduler, sink, _ = _scheduler(OCTAVE_DOWN)
    scheduler.start(50.0)
    call = sink.starts[-1]
    assert call["offset_s"] == pytest.approx(1.0)
    assert call["initial"] == pytest.approx(-6.0)
    assert call["ramps"] == [RampEvent(1.0, -12.0)]


def test_ramps_scale_with_speed():
    scheduler, sink, _ = _scheduler(OCTAVE_DOWN, speed=2.0)
    scheduler.start(0.0)
    assert sink.starts[-1]["ramps"] == [RampEvent(1.0, -12.0)]
    assert sink.starts[-1]["speed"] == 2.0


@pytest.mark.parametrize("speed,curve,expected", [
    (1.0, None, 25.0),
    (2.0, None, 50.0),
    (1.0, CurveSnapshot.from_pairs([(0.0, -12.0)]), 12.5),
])
def test_tick_integrates_instantaneous_rate(speed, curve, expected):
    scheduler, _, clock = _scheduler(curve, speed=speed)
    scheduler.start(0.0)
    clock.advance(0.5)
    assert scheduler.tick() == pytest.approx(expected)


def test_playback_finishes_and_toggle_rewinds():
    scheduler, sink, clock = _scheduler()
    scheduler.start()
    clock.advance(3.0)
    assert scheduler.tick() == 100.0
    assert scheduler.state == PlaybackState.FINISHED
    scheduler.toggle()
    assert scheduler.playing
    assert sink.starts[-1]["offset_s"] == 0.0


def test_toggle_pauses_and_resumes_in_place():
    scheduler, sink, clock = _scheduler()
    scheduler.start(0.0)
    clock.advance(1.0)
    scheduler.tick()
    scheduler.toggle()
    assert scheduler.state == PlaybackState.STOPPED
    assert sink.stops == 1
    clock.advance(10.0)
    assert scheduler.tick() == pytest.approx(50.0)
    scheduler.toggle()
    assert sink.starts[-1]["offset_s"] == pytest.approx(1.0)


def test_changes_while_playing_restart_at_current_position():
    scheduler, sink, clock = _scheduler(OCTAVE_DOWN)
    scheduler.start(0.0)
    clock.advance(0.5)
    scheduler.tick()
    progress = scheduler.progress

    scheduler.set_speed(1.5)
    assert len(sink.starts) == 2
    assert sink.stops == 1
    assert sink.starts[-1]["offset_s"] == pytest.approx(progress / 100.0 * 2.0)

    curve = AutomationCurve([(0.0, 5.0)])
    scheduler.set_curve(curve)
    assert len(sink.starts) == 3
    assert sink.starts[-1]["initial"] == 5.0

    scheduler.seek(80.0)
    assert len(sink.starts) == 4
    assert sink.starts[-1]["offset_s"] == pytest.approx(1.6)


def test_curve_edits_while_paused_are_heard_on_resume():
    curve = AutomationCurve([(0.0, 0.0)])
    scheduler, sink, clock = _scheduler(curve)
    scheduler.start(0.0)
    scheduler.stop()
    curve.move(curve.points[0].id, 0.0, -12.0)
    scheduler.toggle()
    assert sink.starts[-1]["initial"] == -12.0
    assert scheduler.curve.evaluate(0.5) == -12.0
    clock.advance(0.5)
    assert scheduler.tick() == pytest.approx(12.5)


def test_live_curve_edits_wait_for_restart():
    curve = AutomationCurve([(0.0, 0.0)])
    scheduler, sink, _ = _scheduler(curve)
    scheduler.start(0.0)
    curve.insert(0.5, 7.0)
    assert scheduler.curve.evaluate(0.5) == 0.0
    scheduler.seek(50.0)
    assert sink.starts[-1]["initial"] == 7.0


def test_changes_while_stopped_do_not_touch_sink():
    scheduler, sink, _ = _scheduler()
    scheduler.set_speed(2.0)
    scheduler.set_curve(OCTAVE_DOWN)
    scheduler.seek(30.0)
    assert sink.starts == []
    assert scheduler.progress == 30.0


def test_stop_with_reset():
    scheduler, _, clock = _scheduler()
    scheduler.start(40.0)
    scheduler.stop(reset=True)
    assert scheduler.progress == 0.0
    assert scheduler.state == PlaybackState.STOPPED


def test_invalid_speed_rejected():
    scheduler, _, _ = _scheduler()
    with pytest.raises(ValueError):
        scheduler.set_speed(0.0)
    with pytest.raises(ValueError):
        _scheduler(speed=-1.0)
