import logging

import discord
from dotenv import load_dotenv

from historyx.core.bot import HistoryBot
from historyx.core.config import load_config


def main() -> None:
    load_dotenv()
    config = load_config()
    discord.utils.setup_logging(level=logging.getLevelName(config.log_level), root=True)
    bot = HistoryBot(config)
    bot.run(config.token, log_handler=None)


if __name__ == "__main__":
    main()
