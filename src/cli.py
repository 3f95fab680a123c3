"""Terminal solver for the Countdown numbers game."""

import argparse
import logging
import random
import sys
from typing import List, Optional

from dotenv import load_dotenv

from config.config import Config
from games.countdown import Puzzle, describe_outcome, generate_puzzle
from games.solver import solve
from games.steps import SearchMode


def _parse_tiles(text: str) -> List[int]:
    try:
        return [int(n) for n in text.replace(',', ' ').split()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"tiles must be integers: {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solve the Countdown numbers game.")
    parser.add_argument("--tiles", type=_parse_tiles,
                        help="Comma separated tiles, e.g. 25,50,75,100,3,6. Random if omitted.")
    parser.add_argument("--target", type=int, help="The number to reach. Random if omitted.")
    parser.add_argument("--all", action="store_true", help="Find every solution instead of the first.")
    parser.add_argument("--seed", type=int, help="Seed for the random puzzle.")
    parser.add_argument("--min-target", type=int, help="Smallest random target.")
    parser.add_argument("--max-target", type=int, help="Largest random target.")
    parser.add_argument("--config", help="Path to the game settings YAML file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log search details.")
    return parser


def build_puzzle(args: argparse.Namespace, rng: random.Random, settings) -> Puzzle:
    """Use the tiles and target given on the command line, drawing whatever is missing."""
    target_min = args.min_target if args.min_target is not None else settings.target_min
    target_max = args.max_target if args.max_target is not None else settings.target_max

    if args.tiles is None:
        puzzle = generate_puzzle(rng, settings.tile_count, target_min, target_max, settings.pool)
        if args.target is not None:
            puzzle = Puzzle(tiles=puzzle.tiles, target=args.target)
        return puzzle

    if args.target is not None:
        return Puzzle(tiles=tuple(args.tiles), target=args.target)
    if target_min < 1 or target_max < target_min:
        raise ValueError(f"Invalid target range {target_min}-{target_max}")
    return Puzzle(tiles=tuple(args.tiles), target=rng.randint(target_min, target_max))


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        settings = Config(game_config=args.config).game
        puzzle = build_puzzle(args, random.Random(args.seed), settings)
        mode = SearchMode.FIND_ALL if args.all else settings.mode

        print(f"{puzzle}\n")
        outcome = solve(puzzle.tiles, puzzle.target, mode)
    except ValueError as e:
        parser.error(str(e))

    print(describe_outcome(outcome))
    return 0


if __name__ == "__main__":
    sys.exit(main())
