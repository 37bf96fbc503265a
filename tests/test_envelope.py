from __future__ import annotations

import numpy as np
import pytest

from tickwave.control import Control, FunctionArena
from tickwave.envelope import TIME_RANGE, Envelope
from tickwave.errors import CapabilityError, RangeViolationError
from tickwave.lfo import Lfo
from tickwave.timing import TimeManager, TimeStamp

T0 = TimeStamp.zero()


def test_default_adsr_scenario() -> None:
    env = Envelope.new_adsr(0.1, 0.15, 0.8, 0.6)
    out = env.get_envelope(20000, T0)
    A, D, R = 4410, 6615, 26460
    assert env.phase_samples(T0) == (A, D, R)
    assert out.shape == (20000 + R,)

    attack = out[:A]
    assert attack[0] == 0.0
    assert np.all(np.diff(attack) > 0)
    assert attack[-1] < 1.0

    decay = out[A : A + D]
    assert decay[0] == 1.0
    assert np.all(np.diff(decay) <= 0)
    assert np.all(decay > 0.8)

    assert np.all(out[A + D : 20000] == 0.8)

    release = out[20000:]
    assert release[0] == pytest.approx(0.8)
    assert np.all(np.diff(release) <= 0)
    assert release[-1] == pytest.approx(0.8 / R)


def test_flat_sustain_length_contract() -> None:
    env = Envelope.new_adsr(0.0, 0.0, 0.5, 0.01)
    out = env.get_envelope(1000, T0)
    assert out.shape == (1000 + 441,)
    assert np.all(out[:1000] == 0.5)
    assert np.allclose(out[1000:], 0.5 * (1.0 - np.arange(441) / 441))


def test_exponential_sustain_halves_after_one_half_life() -> None:
    env = Envelope.new_adsr_with_half_life(0.0, 0.0, 1.0, 0.01, 0.0)
    out = env.get_envelope(1000, T0)
    assert out.shape == (1000,)
    assert out[0] == 1.0
    assert out[441] == pytest.approx(0.5, rel=1e-9)
    assert out[882] == pytest.approx(0.25, rel=1e-9)


def test_release_starts_from_last_decayed_value() -> None:
    env = Envelope.new_adsr_with_half_life(0.0, 0.0, 1.0, 0.01, 0.01)
    out = env.get_envelope(441, T0)
    assert out[441] == pytest.approx(out[440])
    assert out[441] < 0.51


def test_sustain_shorter_than_attack_and_decay_is_empty() -> None:
    env = Envelope.new_adsr(0.1, 0.15, 0.8, 0.6)
    out = env.get_envelope(5000, T0)
    assert out.shape == (4410 + 6615 + 26460,)
    # The release picks up where the decay stopped, above the sustain level.
    assert out[11025] == out[11024]
    assert out[11025] > 0.8


def test_zero_length_phases_are_skipped() -> None:
    env = Envelope.new_decay(0.0)
    assert env.get_envelope(5, T0).tolist() == [0.0] * 5
    assert env.get_vec(T0, 10).tolist() == [0.0] * 10
    assert env.get_envelope(0, T0).shape == (0,)


def test_release_only_starts_from_the_sustain_level() -> None:
    env = Envelope.new_adsr(0.0, 0.0, 0.6, 0.01)
    out = env.get_envelope(0, T0)
    assert out.shape == (441,)
    assert out[0] == pytest.approx(0.6)


def test_long_span_is_padded_with_zeros() -> None:
    env = Envelope.new_ad(0.01, 0.02)
    out = env.get_vec(T0, 2000)
    assert out.shape == (2000,)
    assert out[441] == 1.0
    assert np.all(out[441 + 882 :] == 0.0)


def test_short_span_keeps_the_whole_release_tail() -> None:
    env = Envelope.new_adsr(0.01, 0.01, 0.5, 0.1)
    full = 441 + 441 + 4410
    short = env.get_vec(T0, 1000)
    assert short.shape == (full,)
    assert short[-1] > 0.0
    assert env.get_vec(T0, full).shape == (full,)
    assert env.get_vec(T0, full + 1).shape == (full + 1,)


def test_scalar_evaluation_fails_fast() -> None:
    env = Envelope.default()
    with pytest.raises(CapabilityError):
        env.get_value(T0)
    with pytest.raises(TypeError):
        env.get_value(T0)


@pytest.mark.parametrize(
    "args, field",
    [
        ((30.0, 0.1, 0.5, None, 0.1), "attack"),
        ((0.1, -1.0, 0.5, None, 0.1), "decay"),
        ((0.1, 0.1, 1.5, None, 0.1), "sustain"),
        ((0.1, 0.1, 0.5, 20.0, 0.1), "sustain half life"),
        ((0.1, 0.1, 0.5, None, 26.0), "release"),
    ],
)
def test_construction_errors_name_the_field(args: tuple, field: str) -> None:
    with pytest.raises(RangeViolationError) as info:
        Envelope(*args)
    assert info.value.origin == [("Envelope", field)]
    assert str(info.value).startswith(f"Envelope.{field}: ")


def test_set_replaces_every_control() -> None:
    env = Envelope.new_adsr_with_half_life(0.1, 0.1, 0.5, 1.0, 0.1)
    env.set(Envelope.new_decay(1.0))
    assert env.attack.get_value(T0) == 0.0
    assert env.decay.get_value(T0) == 1.0
    assert env.sus_half_life is None
    assert env.release.get_value(T0) == 0.0


def test_set_time_manager_reaches_every_control() -> None:
    env = Envelope.default()
    tm = TimeManager(bps=90.0)
    env.set_time_manager(tm)
    assert env.time_manager is tm
    assert env.attack.time_manager is tm
    assert env.release.time_manager is tm


def test_envelope_can_live_in_an_arena() -> None:
    arena = FunctionArena()
    fid = arena.insert(Envelope.new_adsr(0.0, 0.0, 0.5, 0.0))
    id_map = arena.duplicate([fid])
    copied = arena.get(id_map[fid])
    assert isinstance(copied, Envelope)
    assert copied.get_envelope(3, T0).tolist() == [0.5, 0.5, 0.5]


def test_set_hands_the_time_manager_to_new_sources() -> None:
    arena = FunctionArena()
    env = Envelope.default()
    tm = TimeManager(bps=60.0)
    env.set_time_manager(tm)
    lfo = Lfo(1.0)
    other = Envelope.default()
    other.attack = Control.from_function(arena, lfo, TIME_RANGE)
    env.set(other)
    assert env.attack.source == arena.id_of(lfo)
    assert lfo.time_manager is tm
