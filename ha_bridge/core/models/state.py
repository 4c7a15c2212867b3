"""Tagged hub state values and their canonical text form.

Home Assistant reports a state as a JSON value. The bridge narrows it once,
at the client boundary, into one of four variants. Each variant knows how to
render itself, so callers never inspect the payload type again.

Examples:
    >>> parse_state(75).to_text()
    '75'
    >>> parse_state(21.5).to_text()
    '21.5'
    >>> parse_state(True).to_text()
    'true'
    >>> parse_state("playing").to_text()
    'playing'
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class IntegerState:
    """Whole-number state."""

    value: int

    def to_text(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class DecimalState:
    """Floating point state."""

    value: float

    def to_text(self) -> str:
        # Integral values render without a fractional part (75.0 -> "75")
        if math.isfinite(self.value) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


@dataclass(frozen=True)
class BooleanState:
    """True/false state."""

    value: bool

    def to_text(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class TextState:
    """Free-form text state (the usual case for Home Assistant)."""

    value: str

    def to_text(self) -> str:
        return self.value


StateValue = Union[IntegerState, DecimalState, BooleanState, TextState]


def parse_state(raw: Any) -> StateValue | None:
    """Narrow a raw JSON state value into a StateValue.

    Args:
        raw: Value of the ``state`` field of a hub response

    Returns:
        Matching StateValue variant, or None if the response carried no state
    """
    if raw is None:
        return None
    # bool is a subclass of int, check it first
    if isinstance(raw, bool):
        return BooleanState(raw)
    if isinstance(raw, int):
        return IntegerState(raw)
    if isinstance(raw, float):
        return DecimalState(raw)
    return TextState(str(raw))


def state_to_text(state: StateValue) -> str:
    """Render a state value as canonical text."""
    return state.to_text()
