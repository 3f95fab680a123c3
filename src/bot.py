import asyncio
import logging
from functools import partial
from typing import List, Optional, Tuple

import discord
from discord.ext import commands

from config.config import Config
from games.countdown import CountdownGame, Puzzle, describe_outcome
from games.solver import solve
from games.steps import SearchMode
from games.tracker import SearchOutcome
from utils.helpers import send_chunked_message

logger = logging.getLogger(__name__)

SOLVE_USAGE = "Usage: `!solve <target> <tile> <tile> [...] [all]`, e.g. `!solve 952 25 50 75 100 3 6`"


def parse_solve_args(args: Optional[str]) -> Tuple[int, List[int], SearchMode]:
    """
    Parse `!solve` arguments: the target, the tiles, and an optional
    trailing `all` for every solution.

    Raises:
        ValueError: If the arguments cannot be parsed
    """
    tokens = (args or "").replace(',', ' ').split()
    mode = SearchMode.FIRST_MATCH
    if tokens and tokens[-1].lower() in ('all', '--all'):
        mode = SearchMode.FIND_ALL
        tokens = tokens[:-1]

    if len(tokens) < 2:
        raise ValueError(SOLVE_USAGE)
    try:
        numbers = [int(t) for t in tokens]
    except ValueError:
        raise ValueError(SOLVE_USAGE) from None
    return numbers[0], numbers[1:], mode


class CountdownBot(commands.Bot):
    def __init__(self, config: Config):
        intents = discord.Intents.default()
        intents.message_content = True  # Needed to read command arguments

        super().__init__(command_prefix="!", intents=intents)
        self.config = config
        self._reveal_tasks = {}

        settings = config.game
        self.game = CountdownGame(
            pool=settings.pool,
            tile_count=settings.tile_count,
            target_min=settings.target_min,
            target_max=settings.target_max,
            round_duration=settings.round_seconds,
            mode=settings.mode,
        )

        # Command handlers dictionary
        self.command_handlers = {
            'countdown': self._handle_countdown,
            'answer': self._handle_answer,
            'reveal': self._handle_reveal,
            'solve': self._handle_solve,
        }

    async def setup_hook(self):
        """This is called when the bot is ready to start"""
        self.add_commands()

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        await self.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.playing,
                name="Countdown | !countdown"
            )
        )

    def add_commands(self):
        """Register commands using the command handlers dictionary"""
        for cmd_name, handler in self.command_handlers.items():
            # Create a closure that properly captures the handler
            def make_callback(h):
                async def callback(ctx, *, arg=None):
                    if arg is None:
                        await h(ctx)
                    else:
                        await h(ctx, arg)
                return callback

            cmd = commands.Command(make_callback(handler), name=cmd_name)
            self.add_command(cmd)

        logger.debug(f"Registered commands: {', '.join(c.name for c in self.commands)}")

    async def _run_solver(self, tiles: List[int], target: int, mode: SearchMode) -> SearchOutcome:
        """Run the search in the default thread pool to keep the event loop free"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(solve, tiles, target, mode))

    def _format_puzzle(self, puzzle: Puzzle, seconds: int) -> str:
        numbers = ' '.join(f"**{t}**" for t in puzzle.tiles)
        return (
            f"**Countdown!**\n"
            f"Numbers: {numbers}\n"
            f"Target: **{puzzle.target}**\n"
            f"You have {seconds} seconds. Answer with `!answer <expression>`."
        )

    def _schedule_reveal(self, channel, channel_id: str, delay: float):
        """Reveal the round automatically once its time is up"""
        task = asyncio.create_task(self._reveal_after(channel, channel_id, delay))
        self._reveal_tasks[channel_id] = task

    async def _reveal_after(self, channel, channel_id: str, delay: float):
        try:
            await asyncio.sleep(delay)
            self._reveal_tasks.pop(channel_id, None)
            if self.game.get_round(channel_id):
                await self._reveal(channel, channel_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Error revealing round in channel {channel_id}")

    async def _reveal(self, channel, channel_id: str):
        """End the round in a channel and post the results"""
        # Closing happens on the event loop so no answer can land after it
        state, winners = self.game.close_round(channel_id)
        puzzle = state.puzzle
        outcome = await self._run_solver(list(puzzle.tiles), puzzle.target, self.game.mode)

        await send_chunked_message(channel, self._format_reveal(puzzle, winners, outcome))
        await send_chunked_message(channel, describe_outcome(outcome).rstrip(), code_block=True)

    def _format_reveal(self, puzzle: Puzzle, winners, outcome: SearchOutcome) -> str:
        lines = [f"**Round over!** Target was **{puzzle.target}**."]
        if winners:
            for place, sub in enumerate(winners[:5], 1):
                away = "exact!" if sub.distance == 0 else f"{sub.distance} away"
                lines.append(f"{place}. <@{sub.user_id}>: `{sub.expression}` = {sub.result} ({away})")
        else:
            lines.append("No valid answers this round.")

        lines.append("")
        lines.append("Best possible:" if outcome.matched else f"Closest possible ({outcome.closest}):")
        return '\n'.join(lines)

    async def _handle_countdown(self, ctx):
        """Handle the countdown command - starts a round in this channel"""
        channel_id = str(ctx.channel.id)
        try:
            state = self.game.create_round(channel_id, str(ctx.author.id))
        except ValueError as e:
            await ctx.send(str(e))
            return

        await ctx.send(self._format_puzzle(state.puzzle, self.game.round_duration))
        self._schedule_reveal(ctx.channel, channel_id, self.game.round_duration)

    async def _handle_answer(self, ctx, expression: Optional[str] = None):
        """Handle the answer command - submits an expression for the current round"""
        if expression is None:
            await ctx.send("Please provide an expression, e.g. `!answer (100 - 3) * 6`")
            return

        try:
            submission = self.game.submit_answer(str(ctx.channel.id), str(ctx.author.id), expression)
        except ValueError as e:
            await ctx.send(str(e))
            return

        if not submission.valid:
            await ctx.send(f"Invalid answer: {submission.error}")
        elif submission.distance == 0:
            await ctx.send(f"Answer recorded: **{submission.result}**, spot on!")
        else:
            await ctx.send(f"Answer recorded: **{submission.result}** ({submission.distance} away)")

    async def _handle_reveal(self, ctx):
        """Handle the reveal command - ends the round and shows the results"""
        channel_id = str(ctx.channel.id)
        task = self._reveal_tasks.pop(channel_id, None)
        if task:
            task.cancel()

        try:
            await self._reveal(ctx.channel, channel_id)
        except ValueError as e:
            await ctx.send(str(e))

    async def _handle_solve(self, ctx, args: Optional[str] = None):
        """Handle the solve command - solves an arbitrary puzzle
        Usage: !solve <target> <tiles...> [all]
        """
        try:
            target, tiles, mode = parse_solve_args(args)
            async with ctx.typing():
                outcome = await self._run_solver(tiles, target, mode)
        except ValueError as e:
            await ctx.send(str(e))
            return
        except Exception as e:
            logger.exception(f"Error solving {args!r}")
            await ctx.send(f"Error solving puzzle: {str(e)}")
            return

        puzzle = Puzzle(tiles=tuple(tiles), target=target)
        await send_chunked_message(ctx.channel, f"{puzzle}\n{describe_outcome(outcome)}", code_block=True)

    async def on_command_error(self, ctx, error):
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error(f"Command error in {ctx.command}: {error}")
        await ctx.send(f"Error: {error}")
