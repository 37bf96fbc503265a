# ===== Wibbly Wobbly Knobs =====
import math
from typing import Dict, Optional

import numpy as np

from tickwave import SAMPLE_RATE
from tickwave.control import Control, CtrlFunction, FunctionKeeper
from tickwave.errors import ControlError
from tickwave.timing import TimeKeeper, TimeManager, TimeStamp

FREQ_RANGE = (0.01, 50.0)
DEPTH_RANGE = (0.0, 5.0)
OFFSET_RANGE = (0.0, 5.0)


class Lfo(CtrlFunction, FunctionKeeper, TimeKeeper):
    """
    Sine modulator: offset + depth * sin(2π f t), with t the absolute song
    time in seconds. Frequency, depth and offset are read once per call at
    the start time.
    """

    def __init__(
        self,
        freq: float,
        depth: float = 1.0,
        offset: float = 0.0,
        time_manager: Optional[TimeManager] = None,
    ) -> None:
        built = {}
        for field, value, bounds in (
            ("freq", freq, FREQ_RANGE),
            ("depth", depth, DEPTH_RANGE),
            ("offset", offset, OFFSET_RANGE),
        ):
            try:
                built[field] = Control.from_val_in_range(value, bounds)
            except ControlError as err:
                raise err.set_origin("Lfo", field)
        self.freq = built["freq"]
        self.depth = built["depth"]
        self.offset = built["offset"]
        self.time_manager = time_manager if time_manager is not None else TimeManager()

    def _controls(self) -> Dict[str, Control]:
        return {"freq": self.freq, "depth": self.depth, "offset": self.offset}

    def set_time_manager(self, time_manager: TimeManager) -> None:
        if self.time_manager is time_manager:
            return
        self.time_manager = time_manager
        for ctrl in self._controls().values():
            ctrl.set_time_manager(time_manager)

    def get_value(self, time: TimeStamp) -> float:
        t = time.to_seconds(self._time_manager())
        f = self.freq.get_value(time)
        return self.offset.get_value(time) + self.depth.get_value(time) * math.sin(2.0 * math.pi * f * t)

    def get_vec(self, start: TimeStamp, samples: int) -> np.ndarray:
        t0 = start.to_seconds(self._time_manager())
        t = t0 + np.arange(samples, dtype=np.float64) / SAMPLE_RATE
        f = self.freq.get_value(start)
        return self.offset.get_value(start) + self.depth.get_value(start) * np.sin(2.0 * math.pi * f * t)
