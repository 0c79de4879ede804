from typing import List, Optional

import datetime
import logging
from pathlib import Path
from zoneinfo import ZoneInfo

import discord
from discord import app_commands
from discord.ext import commands

from historyx.core.config import BotConfig
from historyx.models.punishments import EntrySource
from historyx.services.advancedban import AdvancedBanExtender
from historyx.services.database import Database
from historyx.services.extender import BanPluginExtender
from historyx.services.history import CustomHistoryStore
from historyx.services.libertybans import LibertyBansExtender
from historyx.services.litebans import LiteBansExtender
from historyx.services.lookup import HistoryService
from historyx.services.mojang import MojangResolver


log = logging.getLogger(__name__)

COG_EXTENSIONS = [
    "historyx.cogs.history.core",
]


def build_extenders(config: BotConfig, custom_db: Database) -> List[BanPluginExtender]:
    extenders: List[BanPluginExtender] = []
    for source in config.sources:
        if source is EntrySource.LITEBANS:
            db = Database(Path(config.litebans_db), read_only=True)  # type: ignore[arg-type]
            extenders.append(LiteBansExtender(db, config.litebans_prefix))
        elif source is EntrySource.ADVANCEDBANS:
            db = Database(Path(config.advancedban_db), read_only=True)  # type: ignore[arg-type]
            extenders.append(AdvancedBanExtender(db))
        elif source is EntrySource.LIBERTYBANS:
            db = Database(Path(config.libertybans_db), read_only=True)  # type: ignore[arg-type]
            extenders.append(LibertyBansExtender(db))
        else:
            extenders.append(CustomHistoryStore(custom_db))
        log.info("Enabled %s history source", source.value)
    return extenders


class HistoryBot(commands.Bot):
    def __init__(self, config: BotConfig) -> None:
        intents = discord.Intents.default()
        intents.members = True
        intents.guilds = True
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
        )
        self.config = config
        base_dir = Path(__file__).resolve().parents[2]
        self.db = Database(base_dir / "historyx.db")
        self.history = HistoryService(build_extenders(config, self.db))
        self.resolver = MojangResolver()
        self.timezone: Optional[datetime.tzinfo] = ZoneInfo(config.timezone) if config.timezone else None

    async def setup_hook(self) -> None:
        for ext in COG_EXTENSIONS:
            await self.load_extension(ext)
        if self.config.guild_ids:
            for guild_id in self.config.guild_ids:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                await self.tree.sync(guild=guild)
        else:
            await self.tree.sync()
        self.tree.on_error = self.on_app_command_error

    async def on_ready(self) -> None:
        if self.user is None:
            return
        log.info("Logged in as %s (%s)", self.user, self.user.id)

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        if isinstance(error, app_commands.CheckFailure):
            message = str(error) or "You do not have permission to use this command."
        else:
            log.error("Unhandled app command error", exc_info=error)
            message = "An error occurred while executing this command."
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException:
            log.warning("Could not report command error to %s", interaction.user)
