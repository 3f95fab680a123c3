# Games package for Discord bot
from .countdown import CountdownGame, Puzzle, generate_puzzle, format_steps, describe_outcome, replay_steps
from .expression_parser import ExpressionParser
from .solver import CountdownSolver, solve
from .steps import Operator, Outcome, SearchMode, Step
from .tracker import SearchOutcome

__all__ = [
    'CountdownGame',
    'CountdownSolver',
    'ExpressionParser',
    'Operator',
    'Outcome',
    'Puzzle',
    'SearchMode',
    'SearchOutcome',
    'Step',
    'describe_outcome',
    'format_steps',
    'generate_puzzle',
    'replay_steps',
    'solve',
]
