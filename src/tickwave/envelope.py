# ===== ADSR Envelope =====
from typing import Dict, Optional

import numpy as np

from tickwave import SAMPLE_RATE
from tickwave.control import UNIT_RANGE, Control, CtrlFunction, FunctionKeeper
from tickwave.errors import CapabilityError, ControlError
from tickwave.timing import TimeKeeper, TimeManager, TimeStamp
from tickwave.utils import seconds_to_samples

TIME_RANGE = (0.0, 25.0)
HALF_LIFE_RANGE = (0.01, 10.0)


def _build(value: float, bounds: tuple[float, float], field: str) -> Control:
    try:
        return Control.from_val_in_range(value, bounds)
    except ControlError as err:
        raise err.set_origin("Envelope", field)


class Envelope(CtrlFunction, FunctionKeeper, TimeKeeper):
    """
    Attack/decay/sustain/release gain curve.

    Times are in seconds, sustain is a level in [0, 1]. With a sustain half
    life the sustain segment decays exponentially instead of holding flat.
    """

    def __init__(
        self,
        attack: float,
        decay: float,
        sustain: float,
        sus_half_life: Optional[float],
        release: float,
        time_manager: Optional[TimeManager] = None,
    ) -> None:
        self.attack = _build(attack, TIME_RANGE, "attack")
        self.decay = _build(decay, TIME_RANGE, "decay")
        self.sustain = _build(sustain, UNIT_RANGE, "sustain")
        self.sus_half_life = (
            None
            if sus_half_life is None
            else _build(sus_half_life, HALF_LIFE_RANGE, "sustain half life")
        )
        self.release = _build(release, TIME_RANGE, "release")
        self.time_manager = time_manager if time_manager is not None else TimeManager()

    @classmethod
    def new_decay(cls, decay: float) -> "Envelope":
        return cls(0.0, decay, 0.0, None, 0.0)

    @classmethod
    def new_ad(cls, attack: float, decay: float) -> "Envelope":
        return cls(attack, decay, 0.0, None, 0.0)

    @classmethod
    def new_adsr(cls, attack: float, decay: float, sustain: float, release: float) -> "Envelope":
        return cls(attack, decay, sustain, None, release)

    @classmethod
    def new_adsr_with_half_life(
        cls, attack: float, decay: float, sustain: float, sus_half_life: float, release: float
    ) -> "Envelope":
        return cls(attack, decay, sustain, sus_half_life, release)

    @classmethod
    def default(cls) -> "Envelope":
        return cls.new_adsr(0.1, 0.15, 0.8, 0.6)

    def __repr__(self) -> str:
        return (
            f"Envelope(attack={self.attack!r}, decay={self.decay!r}, sustain={self.sustain!r}, "
            f"sus_half_life={self.sus_half_life!r}, release={self.release!r})"
        )

    def _controls(self) -> Dict[str, Optional[Control]]:
        return {
            "attack": self.attack,
            "decay": self.decay,
            "sustain": self.sustain,
            "sustain half life": self.sus_half_life,
            "release": self.release,
        }

    def set(self, other: "Envelope") -> None:
        """
        Take over all five controls of `other` at once.
        """
        self.attack = other.attack
        self.decay = other.decay
        self.sustain = other.sustain
        self.sus_half_life = other.sus_half_life
        self.release = other.release
        self.set_ids()
        for ctrl in self._controls().values():
            if ctrl is not None:
                ctrl.set_time_manager(self.time_manager)

    def set_time_manager(self, time_manager: TimeManager) -> None:
        if self.time_manager is time_manager:
            return
        self.time_manager = time_manager
        for ctrl in self._controls().values():
            if ctrl is not None:
                ctrl.set_time_manager(time_manager)

    def phase_samples(self, time: TimeStamp) -> tuple[int, int, int]:
        """
        Attack, decay and release lengths in samples at `time`.
        """
        return (
            seconds_to_samples(self.attack.get_value(time)),
            seconds_to_samples(self.decay.get_value(time)),
            seconds_to_samples(self.release.get_value(time)),
        )

    def get_envelope(self, sus_samples: int, time: TimeStamp) -> np.ndarray:
        """
        Render the full curve. Attack and decay run first; sustain fills the
        output up to `sus_samples` (nothing if attack+decay already reach
        it); the release then falls from whatever value came last.
        """
        A, D, R = self.phase_samples(time)
        s = self.sustain.get_value(time)

        head = [
            np.linspace(0.0, 1.0, A, endpoint=False),
            np.linspace(1.0, s, D, endpoint=False),
        ]
        S_len = max(0, sus_samples - (A + D))
        if self.sus_half_life is not None:
            half_life = self.sus_half_life.get_value(time)
            factor = 0.5 ** (1.0 / (half_life * SAMPLE_RATE))
            head.append(s * factor ** np.arange(S_len, dtype=np.float64))
        else:
            head.append(np.full(S_len, s, dtype=np.float64))
        env = np.concatenate(head)

        # Nothing emitted yet means no attack, decay or sustain: start at the level.
        last = env[-1] if env.size else s
        release = last * np.linspace(1.0, 0.0, R, endpoint=False)
        return np.concatenate([env, release])

    def get_value(self, time: TimeStamp) -> float:
        raise CapabilityError("an envelope has no scalar value; use get_vec")

    def get_vec(self, start: TimeStamp, samples: int) -> np.ndarray:
        """
        Curve for a note lasting `samples`.

        Long spans get the full shape padded with zeros. Short spans keep
        the whole release tail, so the result is max(samples, A + D + R)
        long.
        """
        A, D, R = self.phase_samples(start)
        if samples > A + D + R:
            env = self.get_envelope(0, start)
            return np.concatenate([env, np.zeros(samples - env.size, dtype=np.float64)])
        return self.get_envelope(max(0, samples - R), start)
