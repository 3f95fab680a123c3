"""
Value types shared by the Countdown solver: operators, steps and outcomes.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Tuple


class Operator(Enum):
    """Arithmetic operator, valued by its display symbol."""
    ADD = '+'
    SUBTRACT = '-'
    MULTIPLY = '*'
    DIVIDE = '/'

    @property
    def symbol(self) -> str:
        return self.value

    def apply(self, left: int, right: int) -> int:
        """Apply the operator to two integers. Division is floor division."""
        if self is Operator.ADD:
            return left + right
        if self is Operator.SUBTRACT:
            return left - right
        if self is Operator.MULTIPLY:
            return left * right
        return left // right


# Order in which the explorer tries operators
OPERATOR_ORDER = (Operator.ADD, Operator.SUBTRACT, Operator.MULTIPLY, Operator.DIVIDE)


@dataclass(frozen=True)
class Step:
    """One arithmetic operation in a derivation: left <op> right = result."""
    result: int
    operator: Operator
    left: int
    right: int

    def __str__(self) -> str:
        return f"{self.left} {self.operator.symbol} {self.right} = {self.result}"


@dataclass(frozen=True)
class Candidate:
    """A legal combination of the tiles at indices i and j."""
    value: int
    operator: Operator
    i: int
    j: int


# A derivation path as stored in results
Path = Tuple[Step, ...]


class SearchMode(Enum):
    """Result policy, selected once per search."""
    FIRST_MATCH = "first_match"
    FIND_ALL = "find_all"

    @classmethod
    def parse(cls, value) -> 'SearchMode':
        """Accept a SearchMode or its string value ("first_match", "all", ...)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace('-', '_')
        if text in ('all', 'find_all', 'findall'):
            return cls.FIND_ALL
        if text in ('first', 'first_match', 'firstmatch'):
            return cls.FIRST_MATCH
        raise ValueError(f"Unknown search mode: {value}")


class Outcome(IntEnum):
    """Result of exploring one tile set. Larger values dominate."""
    NOTHING = 0
    CLOSE = 1
    MATCH = 2
