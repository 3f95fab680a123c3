"""
Result tracking for the Countdown solver.

The tracker owns all mutable search state for one top-level solve call:
the closest value seen so far, the exact derivations found, and the
step-count bound used to prune the explorer.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from .steps import Path, SearchMode, Step


@dataclass
class SearchOutcome:
    """Structured result of a search, ready for formatting."""
    target: int
    tiles: Tuple[int, ...]
    mode: SearchMode
    matched: bool
    matches: List[Path] = field(default_factory=list)
    closest: Optional[int] = None
    closest_path: Path = ()
    rounds: int = 0

    @property
    def distance(self) -> Optional[int]:
        """Absolute distance of the closest value from the target."""
        if self.closest is None:
            return None
        return abs(self.target - self.closest)

    @property
    def best_path(self) -> Path:
        """Shortest exact derivation (earliest on ties), else the closest one."""
        if self.matches:
            return min(self.matches, key=len)
        return self.closest_path

    @property
    def fewest_steps(self) -> Optional[int]:
        if not self.matches:
            return None
        return min(len(m) for m in self.matches)


class ResultTracker:
    """
    Records the best derivations found during one search.

    In first-match mode only the first exact derivation is kept and the
    explorer stops as soon as one is recorded. In find-all mode every
    distinct exact derivation is kept in discovery order.
    """

    def __init__(self, target: int, tile_count: int, mode: SearchMode):
        self.target = target
        self.mode = mode
        self.closest: Optional[int] = None
        self.closest_path: Path = ()
        # One more than the deepest possible derivation means "no bound yet"
        self.fewest_steps = tile_count + 1
        self.matches: List[Path] = []
        self._seen: Set[Path] = set()

    @property
    def matched(self) -> bool:
        return bool(self.matches)

    @property
    def stop_at_first(self) -> bool:
        return self.mode is SearchMode.FIRST_MATCH

    def is_closer(self, value: int) -> bool:
        """True if value is strictly closer to the target than the tracked best."""
        if self.closest is None:
            return True
        return abs(self.target - value) < abs(self.target - self.closest)

    def offer(self, value: int, path: Sequence[Step]) -> bool:
        """
        Track value as the closest result if it is strictly closer.

        Ties keep the earlier value. The path is snapshotted because the
        caller keeps mutating it while backtracking.
        """
        if not self.is_closer(value):
            return False
        self.closest = value
        self.closest_path = tuple(path)
        return True

    def record_match(self, path: Sequence[Step]) -> None:
        """Record an exact derivation and tighten the step bound."""
        snapshot = tuple(path)
        self.offer(self.target, snapshot)
        self.fewest_steps = min(self.fewest_steps, len(snapshot))
        if snapshot in self._seen:
            return
        self._seen.add(snapshot)
        self.matches.append(snapshot)

    def can_extend(self, path_length: int) -> bool:
        """Whether recursing from a path of this length could beat the best match."""
        return self.fewest_steps - 1 > path_length

    def to_outcome(self, tiles: Sequence[int], rounds: int) -> SearchOutcome:
        return SearchOutcome(
            target=self.target,
            tiles=tuple(tiles),
            mode=self.mode,
            matched=self.matched,
            matches=list(self.matches),
            closest=self.closest,
            closest_path=self.closest_path,
            rounds=rounds,
        )
