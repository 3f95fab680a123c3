import asyncio
import logging
import discord
from dotenv import load_dotenv
from bot import CountdownBot
from config.config import Config


async def main():
    # Load environment variables
    load_dotenv()

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        print(f"Discord.py Version: {discord.__version__}", flush=True)
        config = Config(require_discord=True)
        bot = CountdownBot(config)
        print("Starting bot...", flush=True)
        async with bot:
            await bot.start(config.discord_token)
    except Exception as e:
        print(f"Error starting bot: {e}", flush=True)
        raise


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
