# ===== Things That Go Wrong =====
from typing import Optional


class TickwaveError(Exception):
    """
    Root of every error raised by tickwave.
    """


class ControlError(TickwaveError):
    """
    Failure inside a control or the control graph.

    Containers tag the error on the way out with `set_origin`, so a leaf
    control never needs to know who owns it. The rendered message lists the
    outermost owner first.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
        self.origin: list[tuple[str, str]] = []

    def set_origin(self, structure: str, field: str) -> "ControlError":
        self.origin.append((structure, field))
        return self

    def __str__(self) -> str:
        if not self.origin:
            return self.detail
        path = ": ".join(f"{s}.{f}" for s, f in reversed(self.origin))
        return f"{path}: {self.detail}"


class RangeViolationError(ControlError, ValueError):
    def __init__(self, value: float, bounds: tuple[float, float]) -> None:
        super().__init__(f"value {value!r} outside [{bounds[0]}, {bounds[1]}]")
        self.value = value
        self.bounds = bounds


class GraphResolutionError(ControlError):
    """
    A source id could not be resolved. `chain` holds the ids involved, in
    walk order.
    """

    def __init__(self, detail: str, chain: Optional[tuple] = None) -> None:
        super().__init__(detail)
        self.chain = tuple(chain or ())


class DanglingReferenceError(GraphResolutionError):
    pass


class CyclicReferenceError(GraphResolutionError):
    pass


class TimeConfigError(TickwaveError, ValueError):
    pass


class UnsupportedTimingError(TickwaveError):
    pass


class LengthMismatchError(TickwaveError, ValueError):
    pass


class CapabilityError(TickwaveError, TypeError):
    pass
