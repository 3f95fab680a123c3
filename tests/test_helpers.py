import asyncio
from unittest.mock import AsyncMock, MagicMock

from utils.helpers import MAX_MESSAGE_LENGTH, chunk_lines, send_chunked_message


class TestChunkLines:
    """Splitting long messages for Discord."""

    def test_short_message_is_one_chunk(self):
        assert chunk_lines("2 + 3 = 5") == ["2 + 3 = 5\n"]

    def test_long_message_split_on_lines(self):
        text = '\n'.join("x" * 99 for _ in range(50))
        chunks = chunk_lines(text)

        assert len(chunks) == 3
        assert all(len(c) <= MAX_MESSAGE_LENGTH for c in chunks)
        assert ''.join(chunks) == text + '\n'

    def test_overlong_line_is_split_hard(self):
        chunks = chunk_lines("y" * 25, max_length=10)

        assert all(len(c) <= 10 for c in chunks)
        assert ''.join(chunks).replace('\n', '') == "y" * 25


class TestSendChunkedMessage:
    def test_reference_only_on_first_chunk(self):
        channel = MagicMock()
        channel.send = AsyncMock()
        reference = MagicMock()
        text = '\n'.join("z" * 99 for _ in range(30))

        asyncio.run(send_chunked_message(channel, text, reference=reference))

        calls = channel.send.await_args_list
        assert len(calls) == 2
        assert calls[0].kwargs == {'reference': reference}
        assert calls[1].kwargs == {}

    def test_code_block_wraps_every_chunk(self):
        channel = MagicMock()
        channel.send = AsyncMock()
        text = '\n'.join("z" * 99 for _ in range(30))

        asyncio.run(send_chunked_message(channel, text, code_block=True))

        for call in channel.send.await_args_list:
            message = call.args[0]
            assert message.startswith("```\n")
            assert message.endswith("```")
            assert len(message) <= MAX_MESSAGE_LENGTH
