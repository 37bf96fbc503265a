# ===== Musical Time → Samples =====
"""
Tempo map and musical timestamps.

One TimeManager is created per composition and shared by reference with
every time-aware object. Deep copies of those objects keep pointing at the
same TimeManager, so a tempo change made after construction is seen
everywhere.

Ticks count subdivisions of a quarter note (MIDI PPQ), while `bps` counts
beats of note value 1/beat_value per minute:

    seconds_per_tick = 60 * beat_value / (4 * bps * ticks_per_beat)
"""

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Union

from tickwave import (
    DEFAULT_BEAT_VALUE,
    DEFAULT_BEATS_PER_BAR,
    DEFAULT_BPM,
    DEFAULT_TICKS_PER_BEAT,
    SAMPLE_RATE,
)
from tickwave.errors import TimeConfigError, UnsupportedTimingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metrical:
    """Header timing in ticks per quarter note."""

    ticks_per_beat: int


@dataclass(frozen=True)
class Timecode:
    """SMPTE header timing. Not supported by the renderer."""

    frames_per_second: int
    ticks_per_frame: int


@dataclass
class TimeManager:
    ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT
    beats_per_bar: int = DEFAULT_BEATS_PER_BAR
    beat_value: int = DEFAULT_BEAT_VALUE
    bps: float = DEFAULT_BPM

    def __post_init__(self) -> None:
        self.validate()

    def __deepcopy__(self, memo: dict) -> "TimeManager":
        # Shared by every holder; copying a holder must not fork the tempo map.
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimeManager":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise TimeConfigError(f"unknown tempo map fields: {sorted(unknown)}")
        return cls(**dict(data))

    @classmethod
    def from_timing(
        cls,
        timing: Union[Metrical, Timecode],
        beats_per_bar: int = DEFAULT_BEATS_PER_BAR,
        beat_value: int = DEFAULT_BEAT_VALUE,
        bps: float = DEFAULT_BPM,
    ) -> "TimeManager":
        if isinstance(timing, Timecode):
            raise UnsupportedTimingError(
                f"timecode timing ({timing.frames_per_second} fps, "
                f"{timing.ticks_per_frame} ticks/frame) is not supported"
            )
        if not isinstance(timing, Metrical):
            raise TypeError(f"unknown timing: {timing!r}")
        return cls(
            ticks_per_beat=timing.ticks_per_beat,
            beats_per_bar=beats_per_bar,
            beat_value=beat_value,
            bps=bps,
        )

    def validate(self) -> None:
        for name in ("ticks_per_beat", "beats_per_bar", "beat_value", "bps"):
            value = getattr(self, name)
            if not value > 0:
                raise TimeConfigError(f"{name} must be > 0, got {value!r}")

    def update(self, **changes: Any) -> None:
        """
        Replace tempo map fields in place. Holders see the new map on their
        next conversion; nothing already rendered is touched.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TimeConfigError(f"unknown tempo map fields: {sorted(unknown)}")
        previous = {name: getattr(self, name) for name in changes}
        for name, value in changes.items():
            setattr(self, name, value)
        try:
            self.validate()
        except TimeConfigError:
            for name, value in previous.items():
                setattr(self, name, value)
            raise
        logger.debug("Tempo map updated: %s", self)

    @property
    def ticks_per_bar(self) -> int:
        """Ticks in one bar, given beats of 1/beat_value notes."""
        return self.beats_per_bar * self.ticks_per_beat * 4 // self.beat_value

    def _tick_denominator(self) -> float:
        self.validate()
        return 4.0 * self.bps * self.ticks_per_beat

    def ticks_to_seconds(self, ticks: int) -> float:
        return ticks * 60.0 * self.beat_value / self._tick_denominator()

    def ticks_to_samples(self, ticks: int, sr: int = SAMPLE_RATE) -> int:
        # One expression keeps whole-beat positions exact in floating point.
        return int(ticks * 60.0 * self.beat_value * sr / self._tick_denominator())

    def samples_to_ticks(self, samples: int, sr: int = SAMPLE_RATE) -> int:
        return int(math.floor(samples * self._tick_denominator() / (60.0 * self.beat_value * sr)))


@dataclass(frozen=True, order=True)
class TimeStamp:
    """
    A position in musical time, counted in ticks from the start of the song.
    """

    ticks: int = 0

    def __post_init__(self) -> None:
        if self.ticks < 0:
            raise ValueError(f"timestamp must be >= 0 ticks, got {self.ticks}")

    @classmethod
    def zero(cls) -> "TimeStamp":
        return cls(0)

    @classmethod
    def from_bars(cls, bar: int, beat: int, tick: int, time_manager: TimeManager) -> "TimeStamp":
        """
        Bar:beat:tick, all 0-indexed. Beats are 1/beat_value notes.
        """
        if bar < 0 or beat < 0 or tick < 0:
            raise ValueError("bar, beat and tick must be >= 0")
        beat_ticks = time_manager.ticks_per_beat * 4 // time_manager.beat_value
        return cls(bar * time_manager.ticks_per_bar + beat * beat_ticks + tick)

    @classmethod
    def from_samples(cls, samples: int, time_manager: TimeManager) -> "TimeStamp":
        return cls(time_manager.samples_to_ticks(samples))

    def __add__(self, other: Union["TimeStamp", int]) -> "TimeStamp":
        if isinstance(other, TimeStamp):
            return TimeStamp(self.ticks + other.ticks)
        if isinstance(other, int):
            return TimeStamp(self.ticks + other)
        return NotImplemented

    __radd__ = __add__

    def to_samples(self, time_manager: TimeManager) -> int:
        return time_manager.ticks_to_samples(self.ticks)

    def to_seconds(self, time_manager: TimeManager) -> float:
        return time_manager.ticks_to_seconds(self.ticks)


class TimeKeeper:
    """
    Mixin for anything that resolves timestamps. Owners forward the manager
    to whatever they contain by extending `set_time_manager`.
    """

    time_manager: Optional[TimeManager] = None

    def set_time_manager(self, time_manager: TimeManager) -> None:
        self.time_manager = time_manager

    def _time_manager(self) -> TimeManager:
        if self.time_manager is None:
            self.time_manager = TimeManager()
        return self.time_manager
