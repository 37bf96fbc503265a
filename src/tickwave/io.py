import logging
import wave
from pathlib import Path
from typing import Union

import numpy as np

from tickwave import SAMPLE_RATE
from tickwave.waves import Wave

logger = logging.getLogger(__name__)


def to_pcm16(audio: Wave) -> np.ndarray:
    """
    Clip to [-1, 1] and interleave channels as int16 frames.
    """
    data = np.stack(audio.channels())
    pcm = (np.clip(data, -1.0, 1.0) * 32767.0).astype(np.int16)
    return pcm.T.reshape(-1)


def save_wav(path: Union[str, Path], audio: Wave, sr: int = SAMPLE_RATE) -> None:
    """
    Export as 16-bit PCM WAV.
    """
    with wave.open(str(path), "w") as f:
        f.setnchannels(audio.CHANNELS)
        f.setsampwidth(2)
        f.setframerate(sr)
        f.writeframes(to_pcm16(audio).tobytes())
    logger.info("Saved %d frames to %s", len(audio), path)
