# ===== Helpers =====
import numpy as np

from tickwave import SAMPLE_RATE


def seconds_to_samples(seconds: float, sr: int = SAMPLE_RATE) -> int:
    """
    Seconds → whole samples, rounded. Negative durations count as zero.
    """
    return max(0, int(round(seconds * sr)))


def max_abs(values: np.ndarray) -> float:
    """
    Largest absolute sample in any channel, 0.0 for empty input.
    """
    if values.size == 0:
        return 0.0
    return float(np.max(np.abs(values)))
