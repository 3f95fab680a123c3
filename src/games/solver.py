"""
Solver for the Countdown Numbers Game.

Finds a sequence of operations combining the tiles to reach a target
number, or the closest reachable value when no exact solution exists.
The search is a depth-first recursion over tile sets that shrink by one
element per level, pruned by operator-specific dead-end rules and by a
bound on the length of the shortest exact solution found so far.
"""

import logging
from typing import Callable, Dict, Iterator, List, Sequence

from .steps import (
    OPERATOR_ORDER,
    Candidate,
    Operator,
    Outcome,
    SearchMode,
    Step,
)
from .tracker import ResultTracker, SearchOutcome

logger = logging.getLogger(__name__)

MIN_TILES = 2
MAX_TILES = 6


# ==================== CANDIDATE GENERATION ====================

def add_candidates(tiles: Sequence[int]) -> Iterator[Candidate]:
    """Addition is commutative, so only pairs with i < j are tried."""
    n = len(tiles)
    for i in range(n - 1):
        for j in range(i + 1, n):
            yield Candidate(tiles[i] + tiles[j], Operator.ADD, i, j)


def subtract_candidates(tiles: Sequence[int]) -> Iterator[Candidate]:
    """
    Subtraction in both orders.

    Zero and negative results are dead ends (a negative difference is the
    same as adding the other way round), and so is a result equal to the
    subtrahend since it adds no new value.
    """
    n = len(tiles)
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            new_val = tiles[i] - tiles[j]
            if new_val <= 0:
                continue
            if new_val == tiles[j]:
                continue
            yield Candidate(new_val, Operator.SUBTRACT, i, j)


def multiply_candidates(tiles: Sequence[int]) -> Iterator[Candidate]:
    """Multiplication is commutative; multiplying by 1 goes nowhere."""
    n = len(tiles)
    for i in range(n - 1):
        if tiles[i] == 1:
            continue
        for j in range(i + 1, n):
            if tiles[j] == 1:
                continue
            yield Candidate(tiles[i] * tiles[j], Operator.MULTIPLY, i, j)


def divide_candidates(tiles: Sequence[int]) -> Iterator[Candidate]:
    """Exact division only, in both orders, never by 0 or 1."""
    n = len(tiles)
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            divisor = tiles[j]
            if divisor == 0 or divisor == 1:
                continue
            if tiles[i] % divisor:
                continue
            new_val = tiles[i] // divisor
            if new_val <= 0:
                continue
            # Quotient equal to the divisor introduces nothing new
            if new_val == divisor:
                continue
            yield Candidate(new_val, Operator.DIVIDE, i, j)


CANDIDATE_GENERATORS: Dict[Operator, Callable[[Sequence[int]], Iterator[Candidate]]] = {
    Operator.ADD: add_candidates,
    Operator.SUBTRACT: subtract_candidates,
    Operator.MULTIPLY: multiply_candidates,
    Operator.DIVIDE: divide_candidates,
}


def generate_candidates(tiles: Sequence[int], op: Operator) -> Iterator[Candidate]:
    """Lazily enumerate the legal candidates for one operator."""
    return CANDIDATE_GENERATORS[op](tiles)


def reduce_tiles(tiles: Sequence[int], candidate: Candidate) -> List[int]:
    """Build the next tile set: the new value followed by the unused tiles."""
    reduced = [candidate.value]
    reduced.extend(t for k, t in enumerate(tiles) if k != candidate.i and k != candidate.j)
    return reduced


# ==================== VALIDATION ====================

def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_puzzle(tiles: Sequence[int], target: int) -> List[int]:
    """
    Check a puzzle before searching it.

    Returns:
        The tiles as a fresh list

    Raises:
        ValueError: If the tile count is out of range, or any tile or the
            target is not a positive integer
    """
    tiles = list(tiles)
    if len(tiles) < MIN_TILES:
        raise ValueError(f"At least {MIN_TILES} tiles are required, got {len(tiles)}")
    if len(tiles) > MAX_TILES:
        raise ValueError(f"At most {MAX_TILES} tiles are supported, got {len(tiles)}")
    for tile in tiles:
        if not _is_positive_int(tile):
            raise ValueError(f"Tiles must be positive integers, got {tile!r}")
    if not _is_positive_int(target):
        raise ValueError(f"Target must be a positive integer, got {target!r}")
    return tiles


# ==================== SEARCH ====================

class _Search:
    """Depth-first explorer for a single solve call."""

    def __init__(self, tracker: ResultTracker):
        self.tracker = tracker
        self.path: List[Step] = []
        self.rounds = 0

    def explore(self, tiles: List[int]) -> Outcome:
        """Try every operator on the tile set, recursing into reduced sets."""
        self.rounds += 1
        best = Outcome.NOTHING

        for op in OPERATOR_ORDER:
            for candidate in generate_candidates(tiles, op):
                result = self._visit(tiles, candidate)
                if result > best:
                    best = result
                if result is Outcome.MATCH and self.tracker.stop_at_first:
                    return Outcome.MATCH

        return best

    def _visit(self, tiles: List[int], candidate: Candidate) -> Outcome:
        tracker = self.tracker
        self.path.append(Step(candidate.value, candidate.operator,
                              tiles[candidate.i], tiles[candidate.j]))
        try:
            # An exact match is terminal for this path
            if candidate.value == tracker.target:
                tracker.record_match(self.path)
                return Outcome.MATCH

            outcome = Outcome.CLOSE if tracker.offer(candidate.value, self.path) else Outcome.NOTHING

            if len(tiles) > 2 and tracker.can_extend(len(self.path)):
                child = self.explore(reduce_tiles(tiles, candidate))
                if child > outcome:
                    outcome = child
            return outcome
        finally:
            self.path.pop()


class CountdownSolver:
    """
    Solver for the Countdown Numbers Game.
    Finds a sequence of operations to reach a target number.
    """

    def __init__(self, mode: SearchMode = SearchMode.FIRST_MATCH):
        self.mode = SearchMode.parse(mode)

    def solve(self, tiles: Sequence[int], target: int) -> SearchOutcome:
        """
        Find the derivations that reach the target, or the closest one.

        Args:
            tiles: Available numbers (2 to 6 positive integers)
            target: The number to reach

        Returns:
            SearchOutcome with the exact matches (one in first-match mode),
            the closest value and its derivation, and the explorer round count

        Raises:
            ValueError: If the puzzle is invalid
        """
        tiles = validate_puzzle(tiles, target)
        tracker = ResultTracker(target, len(tiles), self.mode)

        # A target already on the board needs no steps
        if target in tiles:
            tracker.record_match(())
            logger.debug(f"Target {target} is one of the tiles {tiles}")
            return tracker.to_outcome(tiles, rounds=0)

        logger.debug(f"Searching {tiles} for {target} ({self.mode.value})")
        search = _Search(tracker)
        search.explore(tiles)

        outcome = tracker.to_outcome(tiles, rounds=search.rounds)
        logger.debug(
            f"Search for {target} finished after {outcome.rounds} rounds: "
            f"matched={outcome.matched}, matches={len(outcome.matches)}, closest={outcome.closest}"
        )
        return outcome


def solve(tiles: Sequence[int], target: int,
          mode: SearchMode = SearchMode.FIRST_MATCH) -> SearchOutcome:
    """Solve one puzzle. See CountdownSolver.solve."""
    return CountdownSolver(mode).solve(tiles, target)
