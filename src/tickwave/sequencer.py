# ===== Audacity? Never met her =====
import logging
from typing import Callable, Optional

import numpy as np

from tickwave.effects import Effect
from tickwave.envelope import Envelope
from tickwave.timing import TimeManager, TimeStamp
from tickwave.waves import Wave

logger = logging.getLogger(__name__)


def place(mix: Wave, sound: Wave, start: TimeStamp, time_manager: TimeManager, gain: float = 1.0) -> int:
    """
    Mixes a rendered sound into a timeline at the sample where `start` lands.

    Unlike a fixed-size buffer the timeline grows to fit, so a tail running
    past the current end is kept.

    Args:
        mix (Wave): The timeline to mix into. Modified in place.
        sound (Wave): The sound to add. Scaled in place by `gain`.
        start (TimeStamp): Trigger time of the sound.
        time_manager (TimeManager): Tempo map used to resolve `start`.
        gain (float): Scalar applied to the sound before mixing.

    Returns:
        int: The sample index the sound was placed at.
    """
    start_idx = start.to_samples(time_manager)
    if gain != 1.0:
        sound.scale(gain)
    logger.debug("Placing %d samples at sample %d", len(sound), start_idx)
    mix.add(sound, start_idx)
    return start_idx


def schedule_note(
    mix: Wave,
    start: TimeStamp,
    duration_ticks: int,
    tone: Callable[[int], np.ndarray],
    envelope: Envelope,
    time_manager: TimeManager,
    gain: float = 1.0,
    effects: Optional[Effect] = None,
) -> int:
    """
    Render one note and mix it into the timeline.

    `tone(n)` must return `n` mono samples. The note is shaped by the
    envelope, which may hand back more samples than the note lasts so the
    release can ring out. Effects run on the shaped note, anchored at
    `start`.

    Returns:
        int: Length of the placed sound in samples (0 for an empty note).
    """
    n = (start + duration_ticks).to_samples(time_manager) - start.to_samples(time_manager)
    if n <= 0:
        return 0
    env = envelope.get_vec(start, n)
    raw = np.asarray(tone(env.shape[0]), dtype=np.float64)
    sound = type(mix).from_vec(raw * env)
    if effects is not None:
        effects.apply(sound, start)
    place(mix, sound, start, time_manager, gain)
    return env.shape[0]
