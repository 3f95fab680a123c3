from typing import List, Optional
import discord

MAX_MESSAGE_LENGTH = 2000
CODE_FENCE = "```"


def chunk_lines(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split text on line boundaries into chunks no longer than max_length.
    A single line longer than max_length is split hard.
    """
    chunks = []
    current_chunk = ""

    for line in text.split('\n'):
        while len(line) + 1 > max_length:
            if current_chunk:
                chunks.append(current_chunk)
                current_chunk = ""
            chunks.append(line[:max_length - 1] + '\n')
            line = line[max_length - 1:]
        if len(current_chunk) + len(line) + 1 <= max_length:
            current_chunk += line + '\n'
        else:
            chunks.append(current_chunk)
            current_chunk = line + '\n'

    if current_chunk.strip():
        chunks.append(current_chunk)
    return chunks


async def send_chunked_message(channel: discord.abc.Messageable, message: str,
                               reference: Optional[discord.Message] = None,
                               code_block: bool = False):
    """
    Sends a message in chunks if it exceeds Discord's character limit.
    With code_block every chunk is wrapped in its own ``` fence.
    """
    overhead = 2 * len(CODE_FENCE) + 1 if code_block else 0
    chunks = chunk_lines(message, MAX_MESSAGE_LENGTH - overhead)
    if code_block:
        chunks = [f"{CODE_FENCE}\n{chunk}{CODE_FENCE}" for chunk in chunks]

    # Send first chunk with reference
    if chunks:
        await channel.send(chunks[0], reference=reference)

    # Send remaining chunks
    for chunk in chunks[1:]:
        await channel.send(chunk)
