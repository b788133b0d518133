from __future__ import annotations

import operator as _operator
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


class Operator(str, Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"

    @property
    def symbol(self) -> str:
        """Display symbol, ASCII only so the bitmap font can draw it."""
        return _SYMBOLS[self]

    def apply(self, operand1: int, operand2: int) -> int:
        func = _FUNCTIONS.get(self)
        if func is None:
            raise ValueError(f"Unsupported operator: {self.value}")
        return func(operand1, operand2)


_SYMBOLS = {
    Operator.ADD: "+",
    Operator.SUBTRACT: "-",
    Operator.MULTIPLY: "x",
}

_FUNCTIONS = {
    Operator.ADD: _operator.add,
    Operator.SUBTRACT: _operator.sub,
    Operator.MULTIPLY: _operator.mul,
}


@dataclass(frozen=True, slots=True)
class Puzzle:
    operator: Operator
    operand1: int
    operand2: int
    answer: int

    @property
    def question(self) -> str:
        return f"{self.operand1} {self.operator.symbol} {self.operand2} = ?"


class Challenge(NamedTuple):
    """A freshly issued CAPTCHA: the token to echo back and the image to show."""

    token: str
    image: str

    def as_dict(self) -> dict[str, str]:
        return {"token": self.token, "image": self.image}
