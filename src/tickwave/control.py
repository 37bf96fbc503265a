# ===== Knobs That Can Be Wired To Other Knobs =====
"""
Controls and the id graph behind them.

A Control is either a fixed number inside its range or a reference to a
CtrlFunction living in a FunctionArena. The reference is a FunctionId, never
the function object itself, so structures holding controls can be deep
copied and then re-linked:

    ids = keeper.get_ids()
    id_map = arena.duplicate(ids)   # copies every reachable function
    twin = copy.deepcopy(keeper)    # arena and time manager stay shared
    twin.heal_sources(id_map)       # point the copy at the copied functions

`FunctionArena.clone` does exactly that.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, NamedTuple, Optional

import numpy as np

from tickwave.errors import (
    ControlError,
    CyclicReferenceError,
    DanglingReferenceError,
    RangeViolationError,
)
from tickwave.timing import TimeKeeper, TimeManager, TimeStamp

logger = logging.getLogger(__name__)

UNIT_RANGE = (0.0, 1.0)


class FunctionId(NamedTuple):
    index: int
    generation: int

    def __str__(self) -> str:
        return f"#{self.index}.{self.generation}"


IdMap = Dict[FunctionId, FunctionId]


class CtrlFunction(ABC):
    """
    Anything that yields a value at a timestamp, or `n` consecutive values
    starting there.
    """

    @abstractmethod
    def get_value(self, time: TimeStamp) -> float:
        ...

    @abstractmethod
    def get_vec(self, start: TimeStamp, samples: int) -> np.ndarray:
        ...


class FunctionKeeper:
    """
    Id graph plumbing for structures built out of named controls.

    Subclasses list their controls in `_controls`; every graph operation is
    forwarded to them and failures are tagged with the class name and field.
    """

    def _controls(self) -> Dict[str, "Control"]:
        return {}

    def _origin(self) -> str:
        return type(self).__name__

    def _children(self) -> Iterator[tuple[str, "FunctionKeeper"]]:
        for field, ctrl in self._controls().items():
            if ctrl is not None:
                yield field, ctrl

    def check_heal(self, id_map: IdMap) -> None:
        for field, child in self._children():
            try:
                child.check_heal(id_map)
            except ControlError as err:
                raise err.set_origin(self._origin(), field)

    def heal_sources(self, id_map: IdMap) -> None:
        # All or nothing: no field is rewritten unless every one can be.
        self.check_heal(id_map)
        for _, child in self._children():
            child.heal_sources(id_map)

    def test_sources(self, _path: tuple = ()) -> None:
        for field, child in self._children():
            try:
                child.test_sources(_path)
            except ControlError as err:
                raise err.set_origin(self._origin(), field)

    def set_ids(self, _seen: Optional[set] = None) -> None:
        seen = set() if _seen is None else _seen
        for _, child in self._children():
            child.set_ids(seen)

    def get_ids(self, _seen: Optional[set] = None) -> list[FunctionId]:
        seen = set() if _seen is None else _seen
        out: list[FunctionId] = []
        for _, child in self._children():
            out.extend(child.get_ids(seen))
        return out


class FunctionArena:
    """
    Slot storage for control functions, addressed by generation-checked ids.

    Removing a function bumps the slot's generation, so ids handed out
    earlier stop resolving instead of silently pointing at whatever reuses
    the slot.
    """

    def __init__(self) -> None:
        self._slots: list[list[Any]] = []  # [generation, function or None]
        self._free: list[int] = []

    def __deepcopy__(self, memo: dict) -> "FunctionArena":
        return self

    def __len__(self) -> int:
        return sum(1 for _, func in self._slots if func is not None)

    def __contains__(self, fid: object) -> bool:
        if not isinstance(fid, FunctionId):
            return False
        if not 0 <= fid.index < len(self._slots):
            return False
        generation, func = self._slots[fid.index]
        return func is not None and generation == fid.generation

    def ids(self) -> list[FunctionId]:
        return [FunctionId(i, gen) for i, (gen, func) in enumerate(self._slots) if func is not None]

    def insert(self, func: CtrlFunction) -> FunctionId:
        if self._free:
            index = self._free.pop()
            self._slots[index][1] = func
        else:
            index = len(self._slots)
            self._slots.append([0, func])
        fid = FunctionId(index, self._slots[index][0])
        logger.debug("Registered %s as %s", type(func).__name__, fid)
        return fid

    def get(self, fid: FunctionId) -> CtrlFunction:
        if fid not in self:
            raise DanglingReferenceError(f"no live function for id {fid}", chain=(fid,))
        return self._slots[fid.index][1]

    def remove(self, fid: FunctionId) -> CtrlFunction:
        func = self.get(fid)
        slot = self._slots[fid.index]
        slot[0] += 1
        slot[1] = None
        self._free.append(fid.index)
        logger.debug("Removed %s", fid)
        return func

    def id_of(self, func: CtrlFunction) -> Optional[FunctionId]:
        for i, (gen, stored) in enumerate(self._slots):
            if stored is func:
                return FunctionId(i, gen)
        return None

    def duplicate(self, ids: list[FunctionId]) -> IdMap:
        """
        Copy every listed function into a fresh slot and return old → new.
        The copies are healed against the returned map, so `ids` has to be
        closed under reachability (which is what `get_ids` returns). On
        failure every copy made so far is removed again.
        """
        id_map: IdMap = {}
        try:
            for fid in dict.fromkeys(ids):
                id_map[fid] = self.insert(copy.deepcopy(self.get(fid)))
            for new_id in id_map.values():
                func = self.get(new_id)
                if isinstance(func, FunctionKeeper):
                    func.heal_sources(id_map)
        except ControlError:
            for new_id in id_map.values():
                self.remove(new_id)
            raise
        logger.debug("Duplicated %d functions", len(id_map))
        return id_map

    def clone(self, keeper: FunctionKeeper) -> FunctionKeeper:
        keeper.set_ids()
        id_map = self.duplicate(keeper.get_ids())
        twin = copy.deepcopy(keeper)
        twin.heal_sources(id_map)
        return twin


class Control(CtrlFunction, FunctionKeeper, TimeKeeper):
    """
    A parameter bounded to [min, max].

    Fixed controls hold a number. Sourced controls hold the id of a function
    in `arena` and pass its output through unclamped, so a misbehaving
    modulator stays visible instead of being flattened onto the bounds.
    """

    def __init__(
        self,
        value: float,
        bounds: tuple[float, float],
        source: Optional[FunctionId] = None,
        arena: Optional[FunctionArena] = None,
    ) -> None:
        lo, hi = float(bounds[0]), float(bounds[1])
        if not lo <= hi:
            raise ValueError(f"invalid bounds ({lo}, {hi})")
        self.bounds = (lo, hi)
        self.value = self._check(value)
        self.source = source
        self.arena = arena
        self._pending: Optional[CtrlFunction] = None
        if source is not None and arena is None:
            raise ValueError("a sourced control needs an arena")

    def __repr__(self) -> str:
        if self.source is not None:
            return f"Control(source={self.source}, bounds={self.bounds})"
        if self._pending is not None:
            return f"Control(pending={type(self._pending).__name__}, bounds={self.bounds})"
        return f"Control({self.value!r}, bounds={self.bounds})"

    # ===== Construction =====
    @classmethod
    def from_val_in_range(cls, value: float, bounds: tuple[float, float]) -> "Control":
        return cls(value, bounds)

    @classmethod
    def from_val_in_unit(cls, value: float) -> "Control":
        return cls(value, UNIT_RANGE)

    @classmethod
    def from_id(cls, arena: FunctionArena, fid: FunctionId, bounds: tuple[float, float]) -> "Control":
        return cls(bounds[0], bounds, source=fid, arena=arena)

    @classmethod
    def from_function(
        cls, arena: FunctionArena, func: CtrlFunction, bounds: tuple[float, float]
    ) -> "Control":
        """
        Drive this control from `func`. If `func` is not in the arena yet it
        gets its id on the first `set_ids`, which happens as soon as the
        control is placed into an envelope or effect.
        """
        ctrl = cls(bounds[0], bounds, arena=arena)
        existing = arena.id_of(func)
        if existing is not None:
            ctrl.source = existing
        else:
            ctrl._pending = func
        return ctrl

    def _check(self, value: float) -> float:
        lo, hi = self.bounds
        if not lo <= value <= hi:
            raise RangeViolationError(value, self.bounds)
        return float(value)

    @property
    def is_sourced(self) -> bool:
        return self.source is not None or self._pending is not None

    def _resolve(self) -> Optional[CtrlFunction]:
        if self._pending is not None:
            return self._pending
        if self.source is None:
            return None
        return self.arena.get(self.source)

    # ===== Values =====
    def get_value(self, time: TimeStamp) -> float:
        func = self._resolve()
        if func is None:
            return self.value
        return func.get_value(time)

    def get_vec(self, start: TimeStamp, samples: int) -> np.ndarray:
        func = self._resolve()
        if func is None:
            return np.full(samples, self.value, dtype=np.float64)
        return func.get_vec(start, samples)

    def set_value(self, value: float) -> None:
        """
        Make this a fixed control holding `value`. A rejected value leaves
        the control exactly as it was.
        """
        self.value = self._check(value)
        self.source = None
        self._pending = None

    def set_time_manager(self, time_manager: TimeManager) -> None:
        if self.time_manager is time_manager:
            return
        super().set_time_manager(time_manager)
        if self.source is not None and self.source not in self.arena:
            return
        func = self._resolve()
        if isinstance(func, TimeKeeper) and func is not self:
            func.set_time_manager(time_manager)

    # ===== Id graph =====
    def set_ids(self, _seen: Optional[set] = None) -> None:
        seen = set() if _seen is None else _seen
        if self._pending is not None:
            self.source = self.arena.insert(self._pending)
            self._pending = None
        if self.source is None or self.source in seen or self.source not in self.arena:
            return
        seen.add(self.source)
        func = self.arena.get(self.source)
        if isinstance(func, FunctionKeeper):
            func.set_ids(seen)

    def get_ids(self, _seen: Optional[set] = None) -> list[FunctionId]:
        seen = set() if _seen is None else _seen
        if self._pending is not None:
            if isinstance(self._pending, FunctionKeeper):
                return self._pending.get_ids(seen)
            return []
        if self.source is None or self.source in seen:
            return []
        seen.add(self.source)
        out = [self.source]
        func = self.arena.get(self.source)
        if isinstance(func, FunctionKeeper):
            out.extend(func.get_ids(seen))
        return out

    def check_heal(self, id_map: IdMap) -> None:
        if self._pending is not None:
            if isinstance(self._pending, FunctionKeeper):
                self._pending.check_heal(id_map)
            return
        if self.source is not None and self.source not in id_map:
            raise DanglingReferenceError(
                f"source {self.source} missing from id map", chain=(self.source,)
            )

    def heal_sources(self, id_map: IdMap) -> None:
        self.check_heal(id_map)
        if self._pending is not None:
            if isinstance(self._pending, FunctionKeeper):
                self._pending.heal_sources(id_map)
            return
        if self.source is not None:
            self.source = id_map[self.source]

    def test_sources(self, _path: tuple = ()) -> None:
        if self._pending is not None:
            if isinstance(self._pending, FunctionKeeper):
                self._pending.test_sources(_path)
            return
        if self.source is None:
            return
        chain = _path + (self.source,)
        if self.source in _path:
            raise CyclicReferenceError(
                "cyclic source: " + " -> ".join(str(fid) for fid in chain), chain=chain
            )
        if self.source not in self.arena:
            raise DanglingReferenceError(
                "dangling source: " + " -> ".join(str(fid) for fid in chain), chain=chain
            )
        func = self.arena.get(self.source)
        if isinstance(func, FunctionKeeper):
            func.test_sources(chain)
