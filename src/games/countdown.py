"""
Countdown Numbers Game - puzzle generation, result formatting and rounds.

Players must reach a target number using arithmetic operations on a set
of tiles drawn from the classic 24-tile pool. The search itself lives in
solver.py; this module deals with everything around it.
"""

import logging
import random
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .expression_parser import ExpressionParser
from .solver import MAX_TILES, MIN_TILES, solve
from .steps import Operator, SearchMode, Step
from .tracker import SearchOutcome

logger = logging.getLogger(__name__)

LARGE_NUMBERS = (100, 75, 50, 25)
SMALL_NUMBERS = (10, 10, 9, 9, 8, 8, 7, 7, 6, 6, 5, 5, 4, 4, 3, 3, 2, 2, 1, 1)
TILE_POOL = LARGE_NUMBERS + SMALL_NUMBERS
TILE_COUNT = 6
TARGET_MIN = 101
TARGET_MAX = 999


@dataclass(frozen=True)
class Puzzle:
    """A set of tiles and the target to reach with them."""
    tiles: Tuple[int, ...]
    target: int

    @property
    def large(self) -> List[int]:
        return [t for t in self.tiles if t in LARGE_NUMBERS]

    @property
    def small(self) -> List[int]:
        return [t for t in self.tiles if t not in LARGE_NUMBERS]

    def __str__(self) -> str:
        numbers = ' '.join(str(t) for t in self.tiles)
        return f"Numbers are: {numbers}, target is: {self.target}"


def generate_puzzle(rng: Optional[random.Random] = None,
                    tile_count: int = TILE_COUNT,
                    target_min: int = TARGET_MIN,
                    target_max: int = TARGET_MAX,
                    pool: Sequence[int] = TILE_POOL) -> Puzzle:
    """
    Draw a random puzzle.

    Tiles are drawn from the pool without replacement, so a value appears
    at most as often as it does in the pool.

    Args:
        rng: Random source, the module-level generator if omitted
        tile_count: Number of tiles to draw
        target_min: Smallest possible target
        target_max: Largest possible target
        pool: Tiles to draw from

    Raises:
        ValueError: If the tile count or target range is unusable
    """
    rng = rng or random
    if not MIN_TILES <= tile_count <= MAX_TILES:
        raise ValueError(f"Tile count must be between {MIN_TILES} and {MAX_TILES}")
    if tile_count > len(pool):
        raise ValueError(f"Cannot draw {tile_count} tiles from a pool of {len(pool)}")
    if target_min < 1 or target_max < target_min:
        raise ValueError(f"Invalid target range {target_min}-{target_max}")

    tiles = tuple(rng.sample(list(pool), tile_count))
    target = rng.randint(target_min, target_max)
    return Puzzle(tiles=tiles, target=target)


# ==================== FORMATTING ====================

def format_steps(steps: Sequence[Step]) -> str:
    """Render a derivation as one `a <op> b = c` line per step."""
    return '\n'.join(str(step) for step in steps)


def describe_outcome(outcome: SearchOutcome) -> str:
    """Summarize a search the way the terminal solver reports it."""
    if outcome.matched:
        header = f"after: {outcome.rounds} rounds, solved:"
    else:
        header = f"after: {outcome.rounds} rounds, {outcome.distance} away:"

    lines = [header, ""]
    if outcome.matched and not outcome.best_path:
        lines.append(f"{outcome.target} is one of the tiles")
    elif outcome.matched and outcome.mode is SearchMode.FIND_ALL:
        for k, match in enumerate(outcome.matches, 1):
            lines.append(f"Solution {k}:")
            lines.append(format_steps(match))
            lines.append("")
    else:
        lines.append(format_steps(outcome.best_path))
    return '\n'.join(lines).rstrip() + '\n'


def replay_steps(tiles: Sequence[int], steps: Sequence[Step]) -> Optional[int]:
    """
    Replay a derivation against the starting tiles.

    Each step may only use tiles or earlier results that have not been
    consumed yet, and must obey the game's arithmetic rules.

    Returns:
        The final value, or None for an empty derivation

    Raises:
        ValueError: If a step is invalid
    """
    available = Counter(tiles)
    value = None

    for n, step in enumerate(steps, 1):
        for operand in (step.left, step.right):
            if available[operand] <= 0:
                raise ValueError(f"Step {n} ({step}) uses {operand}, which is not available")
            available[operand] -= 1

        if step.operator is Operator.SUBTRACT and step.left <= step.right:
            raise ValueError(f"Step {n} ({step}) does not give a positive result")
        if step.operator is Operator.DIVIDE and (step.right == 0 or step.left % step.right):
            raise ValueError(f"Step {n} ({step}) is not an exact division")
        if step.operator.apply(step.left, step.right) != step.result:
            raise ValueError(f"Step {n} ({step}) is arithmetically wrong")

        available[step.result] += 1
        value = step.result

    return value


# ==================== ROUNDS ====================

class GameStatus(Enum):
    """Status of a round."""
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class RoundState:
    """Represents a round being played in a channel."""
    puzzle: Puzzle
    channel_id: str
    started_by: str
    start_time: float
    end_time: float
    status: str = GameStatus.ACTIVE.value
    submissions: Dict[str, 'Submission'] = field(default_factory=dict)

    def time_remaining(self) -> float:
        """Get seconds remaining in the round."""
        return max(0, self.end_time - time.time())

    def is_expired(self) -> bool:
        """Check if the round timer has expired."""
        return time.time() >= self.end_time


@dataclass
class Submission:
    """Represents a player's answer submission."""
    user_id: str
    expression: str
    result: Optional[int]
    distance: int
    valid: bool
    error: Optional[str]
    submitted_at: float


class CountdownGame:
    """
    Round manager for the Countdown Numbers Game.

    Keeps one round per channel in memory, validates answers and runs the
    solver when a round ends so the best answer can be revealed.
    """

    def __init__(self,
                 pool: Sequence[int] = TILE_POOL,
                 tile_count: int = TILE_COUNT,
                 target_min: int = TARGET_MIN,
                 target_max: int = TARGET_MAX,
                 round_duration: int = 30,
                 mode: SearchMode = SearchMode.FIRST_MATCH,
                 rng: Optional[random.Random] = None):
        self.pool = tuple(pool)
        self.tile_count = tile_count
        self.target_min = target_min
        self.target_max = target_max
        self.round_duration = round_duration
        self.mode = SearchMode.parse(mode)
        self.rng = rng
        self.parser = ExpressionParser()
        self._rounds: Dict[str, RoundState] = {}

    def new_puzzle(self) -> Puzzle:
        return generate_puzzle(self.rng, self.tile_count, self.target_min,
                               self.target_max, self.pool)

    def get_round(self, channel_id: str) -> Optional[RoundState]:
        """Get the active round for a channel, if any."""
        state = self._rounds.get(channel_id)
        if state and state.status == GameStatus.ACTIVE.value:
            return state
        return None

    def create_round(self, channel_id: str, started_by: str,
                     puzzle: Optional[Puzzle] = None) -> RoundState:
        """
        Start a round in a channel.

        Raises:
            ValueError: If a round is already active in the channel
        """
        if self.get_round(channel_id):
            raise ValueError("A round is already active in this channel!")

        now = time.time()
        state = RoundState(
            puzzle=puzzle or self.new_puzzle(),
            channel_id=channel_id,
            started_by=started_by,
            start_time=now,
            end_time=now + self.round_duration,
        )
        self._rounds[channel_id] = state
        logger.info(f"Round started in {channel_id}: {state.puzzle}")
        return state

    def submit_answer(self, channel_id: str, user_id: str, expression: str) -> Submission:
        """
        Process a player's answer submission.

        Raises:
            ValueError: If no round is active, time expired, or already submitted
        """
        state = self.get_round(channel_id)
        if not state:
            raise ValueError("No active round in this channel! Start one with `!countdown`")

        if state.is_expired():
            raise ValueError("Time's up! The round has ended.")

        if user_id in state.submissions:
            raise ValueError("You already submitted an answer! Wait for results.")

        result = self.parser.parse_and_validate(expression, list(state.puzzle.tiles))

        if result['valid']:
            submission = Submission(
                user_id=user_id,
                expression=expression,
                result=result['result'],
                distance=abs(state.puzzle.target - result['result']),
                valid=True,
                error=None,
                submitted_at=time.time()
            )
        else:
            submission = Submission(
                user_id=user_id,
                expression=expression,
                result=None,
                distance=999999,  # Invalid = worst possible distance
                valid=False,
                error=result['error'],
                submitted_at=time.time()
            )

        state.submissions[user_id] = submission
        return submission

    def close_round(self, channel_id: str) -> Tuple[RoundState, List[Submission]]:
        """
        End the round without solving its puzzle.

        Returns:
            Tuple of (RoundState, winners best first)

        Raises:
            ValueError: If no round to end
        """
        state = self.get_round(channel_id)
        if not state:
            raise ValueError("No active round to end")

        state.status = GameStatus.ENDED.value
        del self._rounds[channel_id]

        winners = self.determine_winners(list(state.submissions.values()))
        return state, winners

    def end_round(self, channel_id: str) -> Tuple[RoundState, List[Submission], SearchOutcome]:
        """
        End the round and solve its puzzle.

        Returns:
            Tuple of (RoundState, winners best first, solver outcome)

        Raises:
            ValueError: If no round to end
        """
        state, winners = self.close_round(channel_id)
        outcome = solve(state.puzzle.tiles, state.puzzle.target, self.mode)
        return state, winners, outcome

    def determine_winners(self, submissions: List[Submission]) -> List[Submission]:
        """
        Sort valid submissions best first.

        Smallest distance to target wins; ties are broken by submission
        time (earlier wins).
        """
        valid_subs = [s for s in submissions if s.valid]
        return sorted(valid_subs, key=lambda s: (s.distance, s.submitted_at))
