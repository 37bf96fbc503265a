# ===== FX =====
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

from tickwave.control import Control, FunctionKeeper
from tickwave.errors import ControlError
from tickwave.timing import TimeKeeper, TimeManager, TimeStamp
from tickwave.waves import Wave

VOL_RANGE = (0.0, 5.0)


class Effect(FunctionKeeper, TimeKeeper, ABC):
    """
    A control-driven transformation of a wave, anchored at the time the
    sound was triggered. Switching an effect off leaves its controls alone.
    """

    def __init__(self) -> None:
        self.enabled = True

    @abstractmethod
    def apply(self, wave: Wave, time_triggered: TimeStamp) -> None:
        ...

    @abstractmethod
    def set_defaults(self) -> None:
        ...

    def on(self) -> None:
        self.enabled = True

    def off(self) -> None:
        self.enabled = False

    def toggle(self) -> None:
        self.enabled = not self.enabled

    def is_on(self) -> bool:
        return self.enabled

    def set_time_manager(self, time_manager: TimeManager) -> None:
        super().set_time_manager(time_manager)
        for _, child in self._children():
            if isinstance(child, TimeKeeper):
                child.set_time_manager(time_manager)


class Volume(Effect):
    def __init__(self, volume: float = 1.0) -> None:
        super().__init__()
        try:
            self.volume = Control.from_val_in_range(volume, VOL_RANGE)
        except ControlError as err:
            raise err.set_origin("Volume", "volume")

    def __repr__(self) -> str:
        return f"Volume({self.volume!r}, enabled={self.enabled})"

    def _controls(self) -> Dict[str, Control]:
        return {"volume": self.volume}

    def set_control(self, control: Control) -> None:
        """
        Hand the gain over to another control, e.g. one sourced from an
        envelope.
        """
        self.volume = control
        self.set_ids()
        if self.time_manager is not None:
            control.set_time_manager(self.time_manager)

    def apply(self, wave: Wave, time_triggered: TimeStamp) -> None:
        if not self.enabled:
            return
        wave.scale_by_vec(self.volume.get_vec(time_triggered, len(wave)))

    def set_defaults(self) -> None:
        self.volume.set_value(1.0)


class EffectChain(Effect):
    """
    Effects applied one after another to the same wave. Turning the chain
    off bypasses all of them.
    """

    def __init__(self, effects: Optional[list] = None) -> None:
        super().__init__()
        self.effects: list[Effect] = list(effects or [])
        self.set_ids()

    def __repr__(self) -> str:
        return f"EffectChain({self.effects!r}, enabled={self.enabled})"

    def __len__(self) -> int:
        return len(self.effects)

    def _children(self) -> Iterator[tuple[str, FunctionKeeper]]:
        for i, effect in enumerate(self.effects):
            yield f"effects[{i}]", effect

    def push(self, effect: Effect) -> None:
        self.effects.append(effect)
        effect.set_ids()
        if self.time_manager is not None:
            effect.set_time_manager(self.time_manager)

    def apply(self, wave: Wave, time_triggered: TimeStamp) -> None:
        if not self.enabled:
            return
        for effect in self.effects:
            effect.apply(wave, time_triggered)

    def set_defaults(self) -> None:
        for effect in self.effects:
            effect.set_defaults()
