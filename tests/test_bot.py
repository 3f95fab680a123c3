import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bot import CountdownBot, parse_solve_args
from config.config import Config
from games.countdown import Puzzle
from games.solver import solve
from games.steps import Operator, SearchMode, Step
from games.tracker import SearchOutcome
from utils.helpers import CODE_FENCE, MAX_MESSAGE_LENGTH


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("COUNTDOWN_CONFIG", raising=False)


def make_ctx(channel_id=123, author_id=42):
    ctx = MagicMock()
    ctx.send = AsyncMock()
    ctx.channel.id = channel_id
    ctx.channel.send = AsyncMock()
    ctx.author.id = author_id
    ctx.typing.return_value.__aexit__ = AsyncMock(return_value=False)
    return ctx


def sent_text(mock):
    return '\n'.join(str(call.args[0]) for call in mock.await_args_list)


class TestParseSolveArgs:
    def test_target_then_tiles(self):
        assert parse_solve_args("952 25 50 75 100 3 6") == (
            952, [25, 50, 75, 100, 3, 6], SearchMode.FIRST_MATCH)

    def test_commas_and_all(self):
        assert parse_solve_args("10 2,3,5 all") == (10, [2, 3, 5], SearchMode.FIND_ALL)

    @pytest.mark.parametrize("args", [None, "", "10", "ten 2 3"])
    def test_usage_errors(self, args):
        with pytest.raises(ValueError, match="Usage"):
            parse_solve_args(args)


class TestCountdownBot:
    """Command handlers, driven with mocked contexts."""

    def setup_method(self):
        self.bot = CountdownBot(Config())
        self.ctx = make_ctx()

    def test_registers_commands(self):
        self.bot.add_commands()
        assert {'countdown', 'answer', 'reveal', 'solve'} <= {c.name for c in self.bot.commands}

    def test_solve_posts_solutions(self):
        asyncio.run(self.bot._handle_solve(self.ctx, "10 2 3 5 all"))

        text = sent_text(self.ctx.channel.send)
        assert text.startswith("```")
        assert "Numbers are: 2 3 5, target is: 10" in text
        assert "2 * 5 = 10" in text

    def test_solve_rejects_invalid_puzzle(self):
        asyncio.run(self.bot._handle_solve(self.ctx, "7 7"))

        self.ctx.send.assert_awaited_once()
        assert "At least 2 tiles" in sent_text(self.ctx.send)
        self.ctx.channel.send.assert_not_awaited()

    def test_countdown_starts_round(self):
        with patch.object(self.bot, '_schedule_reveal') as schedule:
            asyncio.run(self.bot._handle_countdown(self.ctx))
            asyncio.run(self.bot._handle_countdown(self.ctx))

        schedule.assert_called_once()
        state = self.bot.game.get_round("123")
        assert state is not None
        text = sent_text(self.ctx.send)
        assert "**Countdown!**" in text
        assert f"Target: **{state.puzzle.target}**" in text
        assert "already active" in text

    def test_answer(self):
        self.bot.game.create_round("123", "1", puzzle=Puzzle(tiles=(2, 3, 5), target=10))

        asyncio.run(self.bot._handle_answer(self.ctx, "2 * 5"))

        assert "spot on" in sent_text(self.ctx.send)

    def test_answer_needs_expression(self):
        asyncio.run(self.bot._handle_answer(self.ctx))
        assert "Please provide an expression" in sent_text(self.ctx.send)

    def test_answer_without_round(self):
        asyncio.run(self.bot._handle_answer(self.ctx, "2 * 5"))
        assert "No active round" in sent_text(self.ctx.send)

    def test_invalid_answer(self):
        self.bot.game.create_round("123", "1", puzzle=Puzzle(tiles=(2, 3, 5), target=10))

        asyncio.run(self.bot._handle_answer(self.ctx, "9 + 1"))

        assert "Invalid answer" in sent_text(self.ctx.send)

    def test_reveal(self):
        self.bot.game.create_round("123", "1", puzzle=Puzzle(tiles=(2, 3, 5), target=9))
        self.bot.game.submit_answer("123", "42", "2 + 5")

        asyncio.run(self.bot._handle_reveal(self.ctx))

        text = sent_text(self.ctx.channel.send)
        assert "**Round over!** Target was **9**." in text
        assert "<@42>" in text
        assert "2 away" in text
        assert "solved:" in text
        assert self.bot.game.get_round("123") is None

    def test_reveal_without_round(self):
        asyncio.run(self.bot._handle_reveal(self.ctx))
        assert "No active round to end" in sent_text(self.ctx.send)

    def test_reveal_closes_round_before_solving(self):
        puzzle = Puzzle(tiles=(2, 3, 5), target=10)
        self.bot.game.create_round("123", "1", puzzle=puzzle)

        async def run_solver(tiles, target, mode):
            assert self.bot.game.get_round("123") is None
            with pytest.raises(ValueError, match="No active round"):
                self.bot.game.submit_answer("123", "42", "2 * 5")
            return solve(tiles, target, mode)

        with patch.object(self.bot, '_run_solver', side_effect=run_solver) as run:
            asyncio.run(self.bot._handle_reveal(self.ctx))

        run.assert_awaited_once_with([2, 3, 5], 10, self.bot.game.mode)
        assert "No valid answers this round." in sent_text(self.ctx.channel.send)

    def test_long_reveal_keeps_fences_balanced(self):
        self.bot.game.create_round("123", "1", puzzle=Puzzle(tiles=(2, 3, 5), target=10))
        matches = [
            (Step(k + 1, Operator.ADD, k, 1), Step(10, Operator.ADD, k + 1, 9 - k))
            for k in range(1, 300)
        ]
        outcome = SearchOutcome(
            target=10, tiles=(2, 3, 5), mode=SearchMode.FIND_ALL, matched=True,
            matches=matches, closest=10, closest_path=matches[0], rounds=1,
        )

        with patch.object(self.bot, '_run_solver', AsyncMock(return_value=outcome)):
            asyncio.run(self.bot._handle_reveal(self.ctx))

        messages = [call.args[0] for call in self.ctx.channel.send.await_args_list]
        assert len(messages) > 2
        assert messages[0].startswith("**Round over!**")
        for message in messages:
            assert len(message) <= MAX_MESSAGE_LENGTH
            assert message.count(CODE_FENCE) % 2 == 0
        assert "Solution 299:" in sent_text(self.ctx.channel.send)

    def test_scheduled_reveal_logs_errors(self):
        self.bot.game.create_round("123", "1", puzzle=Puzzle(tiles=(2, 3, 5), target=10))

        with patch.object(self.bot, '_reveal', AsyncMock(side_effect=RuntimeError("boom"))), \
                patch('bot.logger') as logger:
            asyncio.run(self.bot._reveal_after(self.ctx.channel, "123", 0))

        logger.exception.assert_called_once()

    def test_scheduled_reveal_can_be_cancelled(self):
        async def schedule_and_cancel():
            self.bot._schedule_reveal(self.ctx.channel, "123", 60)
            task = self.bot._reveal_tasks["123"]
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(schedule_and_cancel())

        self.ctx.channel.send.assert_not_awaited()
