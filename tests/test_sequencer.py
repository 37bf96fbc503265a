from __future__ import annotations

import numpy as np
import pytest

from tickwave import SAMPLE_RATE
from tickwave.effects import EffectChain, Volume
from tickwave.envelope import Envelope
from tickwave.sequencer import place, schedule_note
from tickwave.timing import TimeManager, TimeStamp
from tickwave.waves import Mono, Stereo


def test_place_grows_the_timeline() -> None:
    tm = TimeManager(ticks_per_beat=1, bps=60.0)
    mix = Mono.zeros(SAMPLE_RATE)
    idx = place(mix, Mono.ones(10), TimeStamp(2), tm, gain=0.5)
    assert idx == 2 * SAMPLE_RATE
    assert len(mix) == 2 * SAMPLE_RATE + 10
    assert np.all(mix.get_vec()[idx:] == 0.5)
    assert np.all(mix.get_vec()[:idx] == 0.0)


def test_long_note_is_shaped_and_placed() -> None:
    tm = TimeManager(ticks_per_beat=4, bps=60.0)
    env = Envelope.new_adsr(0.01, 0.01, 0.5, 0.05)
    mix = Stereo.new()
    n = schedule_note(mix, TimeStamp(4), 1, np.ones, env, tm, gain=0.5)
    start = SAMPLE_RATE
    assert n == SAMPLE_RATE // 4
    assert len(mix) == start + n
    left = mix.left
    assert left[start] == 0.0
    assert left[start + 441] == pytest.approx(0.5)
    assert np.all(left[start + 441 + 441 + 2205 :] == 0.0)
    assert np.array_equal(mix.left, mix.right)


def test_short_note_rings_out_its_release() -> None:
    tm = TimeManager()
    env = Envelope.new_adsr(0.01, 0.01, 0.5, 0.05)
    mix = Mono.new()
    n = schedule_note(mix, TimeStamp.zero(), 1, np.ones, env, tm)
    assert n == 441 + 441 + 2205
    assert len(mix) == n
    assert mix.get_vec()[-1] > 0.0


def test_effects_run_before_placement() -> None:
    tm = TimeManager(ticks_per_beat=4, bps=60.0)
    env = Envelope.new_adsr(0.0, 0.0, 1.0, 0.0)
    mix = Mono.new()
    chain = EffectChain([Volume(0.5)])
    schedule_note(mix, TimeStamp.zero(), 4, np.ones, env, tm, effects=chain)
    # Span longer than the (empty) shape: the envelope pads with zeros.
    assert len(mix) == SAMPLE_RATE
    assert np.all(mix.get_vec() == 0.0)

    env = Envelope.new_adsr(0.0, 0.01, 0.5, 0.0)
    mix = Mono.new()
    schedule_note(mix, TimeStamp.zero(), 4, np.ones, env, tm, effects=chain)
    assert mix.get_vec()[0] == pytest.approx(0.5)


def test_zero_length_note_is_skipped() -> None:
    mix = Mono.zeros(3)
    assert schedule_note(mix, TimeStamp(1), 0, np.ones, Envelope.default(), TimeManager()) == 0
    assert len(mix) == 3
