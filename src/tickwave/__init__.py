# -*- coding: utf-8 -*-
"""
tickwave

Rendering core for an offline synth: musical time to samples, parameter
automation through a control graph, and numpy-backed wave buffers.
"""

# ===== Global Session Settings =====
SAMPLE_RATE = 44100
PEAK_TARGET = 0.9

DEFAULT_TICKS_PER_BEAT = 480
DEFAULT_BEATS_PER_BAR = 4
DEFAULT_BEAT_VALUE = 4
DEFAULT_BPM = 120.0

# Submodules read the constants above, so they are imported after them.
from tickwave.errors import (  # noqa: E402
    CapabilityError,
    ControlError,
    CyclicReferenceError,
    DanglingReferenceError,
    GraphResolutionError,
    LengthMismatchError,
    RangeViolationError,
    TickwaveError,
    TimeConfigError,
    UnsupportedTimingError,
)
from tickwave.timing import Metrical, TimeKeeper, TimeManager, TimeStamp, Timecode  # noqa: E402
from tickwave.control import Control, CtrlFunction, FunctionArena, FunctionId, FunctionKeeper  # noqa: E402
from tickwave.envelope import Envelope  # noqa: E402
from tickwave.lfo import Lfo  # noqa: E402
from tickwave.waves import Mono, Stereo, Wave  # noqa: E402
from tickwave.effects import Effect, EffectChain, Volume  # noqa: E402

__all__ = [
    "SAMPLE_RATE",
    "PEAK_TARGET",
    "CapabilityError",
    "Control",
    "ControlError",
    "CtrlFunction",
    "CyclicReferenceError",
    "DanglingReferenceError",
    "Effect",
    "EffectChain",
    "Envelope",
    "FunctionArena",
    "FunctionId",
    "FunctionKeeper",
    "GraphResolutionError",
    "LengthMismatchError",
    "Lfo",
    "Metrical",
    "Mono",
    "RangeViolationError",
    "Stereo",
    "TickwaveError",
    "TimeConfigError",
    "TimeKeeper",
    "TimeManager",
    "TimeStamp",
    "Timecode",
    "UnsupportedTimingError",
    "Volume",
    "Wave",
]
