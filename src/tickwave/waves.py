# ===== Buffers =====
"""
Mono and stereo sample buffers.

Samples live in a (channels, capacity) float64 array with a separate
length, so every channel has the same length by construction and growing a
timeline by mixing events into it does not reallocate on every add.
"""

from typing import Iterable, Sequence, Union

import numpy as np

from tickwave import PEAK_TARGET
from tickwave.errors import LengthMismatchError
from tickwave.utils import max_abs

ArrayLike = Union[np.ndarray, Sequence[float], Iterable[float]]


class Wave:
    CHANNELS = 1

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._buf = np.zeros((self.CHANNELS, capacity), dtype=np.float64)
        self._len = 0

    # ===== Construction =====
    @classmethod
    def new(cls) -> "Wave":
        return cls()

    @classmethod
    def with_capacity(cls, capacity: int) -> "Wave":
        return cls(capacity)

    @classmethod
    def zeros(cls, length: int) -> "Wave":
        wave = cls(length)
        wave._len = length
        return wave

    @classmethod
    def ones(cls, length: int) -> "Wave":
        wave = cls.zeros(length)
        wave._buf.fill(1.0)
        return wave

    @classmethod
    def from_vec(cls, values: ArrayLike) -> "Wave":
        """
        Mono samples copied into every channel.
        """
        vec = np.asarray(values, dtype=np.float64)
        if vec.ndim != 1:
            raise ValueError(f"expected a 1-D sample vector, got shape {vec.shape}")
        wave = cls.zeros(vec.shape[0])
        wave._buf[:, :] = vec
        return wave

    def __repr__(self) -> str:
        return f"{type(self).__name__}(len={self._len})"

    # ===== Shape =====
    @property
    def _data(self) -> np.ndarray:
        return self._buf[:, : self._len]

    @property
    def capacity(self) -> int:
        return self._buf.shape[1]

    def __len__(self) -> int:
        return self._len

    def len(self) -> int:
        return self._len

    def is_empty(self) -> bool:
        return self._len == 0

    def _reserve(self, length: int) -> None:
        if length <= self.capacity:
            return
        grown = np.zeros((self.CHANNELS, max(length, 2 * self.capacity)), dtype=np.float64)
        grown[:, : self._len] = self._data
        self._buf = grown

    def resize(self, new_len: int, fill: float = 0.0) -> None:
        if new_len < 0:
            raise ValueError(f"length must be >= 0, got {new_len}")
        self._reserve(new_len)
        if new_len > self._len:
            self._buf[:, self._len : new_len] = fill
        self._len = new_len

    def clear(self) -> None:
        self._len = 0

    def channel(self, index: int) -> np.ndarray:
        return self._data[index].copy()

    def channels(self) -> list[np.ndarray]:
        return [row.copy() for row in self._data]

    # ===== Mixing =====
    def add(self, other: "Wave", index: int = 0) -> None:
        """
        Mix `other` in starting at sample `index`, growing self (zero
        filled) when `other` runs past the end.
        """
        if other.CHANNELS != self.CHANNELS:
            raise LengthMismatchError(
                f"cannot mix {other.CHANNELS} channel(s) into {self.CHANNELS}"
            )
        if index < 0:
            raise ValueError(f"index must be >= 0, got {index}")
        # Mixing a wave into itself must read the samples before growing.
        src = other._data.copy() if other is self else other._data
        if index == 0 and self._len == other._len:
            self._data[:, :] += src
            return
        end = index + src.shape[1]
        if self._len < end:
            self.resize(end, 0.0)
        self._buf[:, index:end] += src

    def add_consuming(self, other: "Wave", index: int = 0) -> None:
        """
        Like `add`, then empties `other` and drops its storage.
        """
        self.add(other, index)
        other._buf = np.zeros((other.CHANNELS, 0), dtype=np.float64)
        other._len = 0

    # ===== Scaling =====
    def scale(self, factor: float) -> None:
        self._data[:, :] *= factor

    def scale_by_vec(self, values: ArrayLike) -> None:
        """
        Multiply every channel by the same per-sample gain curve. The curve
        must match the wave length exactly.
        """
        vec = np.asarray(values, dtype=np.float64)
        if vec.shape != (self._len,):
            raise LengthMismatchError(
                f"gain curve of shape {vec.shape} does not match wave length {self._len}"
            )
        self._data[:, :] *= vec

    def peak_normalize(self) -> None:
        """
        Scale so the loudest sample in any channel hits PEAK_TARGET.
        Silence is left alone.
        """
        peak = max_abs(self._data)
        if peak > 0.0:
            self.scale(PEAK_TARGET / peak)


class Mono(Wave):
    CHANNELS = 1

    def get_vec(self) -> np.ndarray:
        return self.channel(0)


class Stereo(Wave):
    CHANNELS = 2

    @classmethod
    def from_channels(cls, left: ArrayLike, right: ArrayLike) -> "Stereo":
        l_vec = np.asarray(left, dtype=np.float64)
        r_vec = np.asarray(right, dtype=np.float64)
        if l_vec.ndim != 1 or l_vec.shape != r_vec.shape:
            raise LengthMismatchError(
                f"left {l_vec.shape} and right {r_vec.shape} must be equal length vectors"
            )
        wave = cls.zeros(l_vec.shape[0])
        wave._buf[0, :] = l_vec
        wave._buf[1, :] = r_vec
        return wave

    @classmethod
    def from_mono(cls, mono: Mono) -> "Stereo":
        return cls.from_vec(mono.get_vec())

    @property
    def left(self) -> np.ndarray:
        return self.channel(0)

    @property
    def right(self) -> np.ndarray:
        return self.channel(1)
