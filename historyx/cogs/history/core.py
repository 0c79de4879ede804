from typing import List, Optional

import datetime
import logging

import discord
from discord import app_commands
from discord.ext import commands

from historyx.core.bot import HistoryBot
from historyx.core.views import PagedEmbedView, ResponseView
from historyx.models.errors import HistoryFetchError, InvalidEntryError, PlayerLookupError
from historyx.models.punishments import EntrySource, PunishmentEntry, current_millis
from historyx.services.history import CustomHistoryStore
from historyx.services.lookup import HistorySummary, is_in_effect
from historyx.services.permissions import is_staff


log = logging.getLogger(__name__)

ENTRIES_PER_PAGE = 5

TYPE_CHOICES = [
    app_commands.Choice(name="Ban", value="ban"),
    app_commands.Choice(name="Mute", value="mute"),
    app_commands.Choice(name="Warn", value="warn"),
    app_commands.Choice(name="Kick", value="kick"),
]

SOURCE_CHOICES = [app_commands.Choice(name=source.name.title(), value=source.value) for source in EntrySource]


def status_label(entry: PunishmentEntry, now: Optional[int] = None) -> str:
    if entry.was_removed():
        if entry.removed_by_name:
            return f"Removed by {entry.removed_by_name}"
        return "Removed"
    if is_in_effect(entry, now):
        if entry.is_permanent():
            return "Active (permanent)"
        return f"Active ({entry.remaining_string(now)} left)"
    if entry.is_permanent():
        return "Inactive"
    return "Expired"


def describe_entry(entry: PunishmentEntry, now: Optional[int] = None, tz: Optional[datetime.tzinfo] = None) -> str:
    executor = entry.executor_name or entry.executor_uuid or "Unknown"
    lines = [
        f"**Reason:** {entry.reason or 'None'}",
        f"**By:** {executor}",
        f"**Date:** {entry.date_start_formatted(tz)}",
        f"**Duration:** {entry.duration_string()}",
        f"**Status:** {status_label(entry, now)}",
    ]
    if entry.ip and entry.ipban:
        lines.append(f"**IP:** {entry.ip}")
    if entry.server_scope and entry.server_scope != "*":
        lines.append(f"**Scope:** {entry.server_scope}")
    if entry.removal_reason and entry.was_removed():
        lines.append(f"**Removal reason:** {entry.removal_reason}")
    return "\n".join(lines)


def build_history_pages(
    player: str,
    entries: List[PunishmentEntry],
    now: Optional[int] = None,
    tz: Optional[datetime.tzinfo] = None,
) -> List[discord.Embed]:
    if now is None:
        now = current_millis()
    pages: List[discord.Embed] = []
    chunks = [entries[i:i + ENTRIES_PER_PAGE] for i in range(0, len(entries), ENTRIES_PER_PAGE)]
    for number, chunk in enumerate(chunks, start=1):
        embed = discord.Embed(
            title=f"Punishment history: {player}",
            colour=discord.Colour.blurple(),
        )
        for entry in chunk:
            name = f"#{entry.id} {entry.type.title()} ({entry.source.value})"
            if entry.silent:
                name += " [silent]"
            embed.add_field(name=name, value=describe_entry(entry, now, tz), inline=False)
        count = len(entries)
        plural = "entry" if count == 1 else "entries"
        embed.set_footer(text=f"Page {number}/{len(chunks)} | {count} {plural}")
        pages.append(embed)
    return pages


def build_summary_embed(player: str, summary: HistorySummary) -> discord.Embed:
    embed = discord.Embed(
        title=f"Punishment summary: {player}",
        colour=discord.Colour.blurple(),
    )
    embed.add_field(name="Total", value=str(summary.total), inline=True)
    embed.add_field(name="Active", value=str(summary.active), inline=True)
    embed.add_field(name="Removed", value=str(summary.removed), inline=True)
    breakdown = "\n".join(f"{name.title()}: {count}" for name, count in sorted(summary.by_type.items()))
    embed.add_field(name="By type", value=breakdown or "None", inline=False)
    return embed


class History(commands.Cog):
    def __init__(self, bot: HistoryBot) -> None:
        self.bot = bot

    async def _resolve(self, interaction: discord.Interaction, player: str) -> Optional[str]:
        try:
            uuid = await self.bot.resolver.resolve(player)
        except PlayerLookupError as exc:
            log.warning("Player lookup failed for %s: %s", player, exc)
            await interaction.followup.send("Could not look up that player right now.", ephemeral=True)
            return None
        if uuid is None:
            await interaction.followup.send(f"No player named `{player}` was found.", ephemeral=True)
        return uuid

    def _custom_store(self) -> Optional[CustomHistoryStore]:
        store = self.bot.history.get_extender(EntrySource.CUSTOM)
        if isinstance(store, CustomHistoryStore):
            return store
        return None

    @app_commands.command(name="history", description="Show the punishment history of a player")
    @is_staff()
    @app_commands.describe(player="Player name or UUID", type="Only show this punishment type", source="Only show this source")
    @app_commands.choices(type=TYPE_CHOICES, source=SOURCE_CHOICES)
    async def history(
        self,
        interaction: discord.Interaction,
        player: str,
        type: Optional[app_commands.Choice[str]] = None,
        source: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        uuid = await self._resolve(interaction, player)
        if uuid is None:
            return
        sources = [EntrySource.parse(source.value)] if source is not None else None
        try:
            entries = self.bot.history.get_history(uuid, sources)
        except HistoryFetchError:
            await interaction.followup.send("Could not load punishment history. Check the bot logs.", ephemeral=True)
            return
        if type is not None:
            entries = [entry for entry in entries if entry.type == type.value]
        if not entries:
            await interaction.followup.send(f"No history found for `{player}`.", ephemeral=True, view=ResponseView())
            return
        pages = build_history_pages(player, entries, tz=self.bot.timezone)
        if len(pages) == 1:
            await interaction.followup.send(embed=pages[0], ephemeral=True, view=ResponseView())
            return
        view = PagedEmbedView(pages, interaction.user.id)
        await interaction.followup.send(embed=pages[0], ephemeral=True, view=view)

    @app_commands.command(name="punishment-stats", description="Summarize the punishment history of a player")
    @is_staff()
    @app_commands.describe(player="Player name or UUID")
    async def punishment_stats(self, interaction: discord.Interaction, player: str) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        uuid = await self._resolve(interaction, player)
        if uuid is None:
            return
        try:
            entries = self.bot.history.get_history(uuid)
        except HistoryFetchError:
            await interaction.followup.send("Could not load punishment history. Check the bot logs.", ephemeral=True)
            return
        summary = self.bot.history.summarize(entries)
        await interaction.followup.send(embed=build_summary_embed(player, summary), ephemeral=True, view=ResponseView())

    @app_commands.command(name="record-punishment", description="Record a punishment in the HistoryX store")
    @is_staff()
    @app_commands.describe(
        player="Player name or UUID",
        type="Punishment type",
        reason="Reason for the punishment",
        minutes="Length in minutes, leave empty for permanent",
    )
    @app_commands.choices(type=TYPE_CHOICES)
    async def record_punishment(
        self,
        interaction: discord.Interaction,
        player: str,
        type: app_commands.Choice[str],
        reason: str,
        minutes: Optional[app_commands.Range[int, 1, 525600]] = None,
    ) -> None:
        store = self._custom_store()
        if store is None:
            await interaction.response.send_message("The custom history source is not enabled.", ephemeral=True)
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        uuid = await self._resolve(interaction, player)
        if uuid is None:
            return
        now = current_millis()
        duration = minutes * 60_000 if minutes else 0
        try:
            entry = store.add_entry(
                PunishmentEntry(
                    id=0,
                    type=type.value,
                    uuid=uuid,
                    ip=None,
                    reason=reason,
                    executor_uuid=str(interaction.user.id),
                    executor_name=str(interaction.user),
                    date_start=now,
                    date_end=now + duration if duration else -1,
                    server_scope="*",
                    server_origin=interaction.guild.name if interaction.guild else "",
                    silent=False,
                    ipban=False,
                    active=type.value in ("ban", "mute"),
                    duration=duration,
                    source=EntrySource.CUSTOM,
                )
            )
        except InvalidEntryError as exc:
            await interaction.followup.send(str(exc), ephemeral=True)
            return
        await interaction.followup.send(
            f"Recorded {entry.type} #{entry.id} for `{player}` ({entry.duration_string()}).",
            ephemeral=True,
        )

    @app_commands.command(name="revoke-entry", description="Mark a HistoryX punishment as removed")
    @is_staff()
    @app_commands.describe(entry_id="Entry number shown in /history", reason="Why the punishment is being removed")
    async def revoke_entry(self, interaction: discord.Interaction, entry_id: int, reason: Optional[str] = None) -> None:
        store = self._custom_store()
        if store is None:
            await interaction.response.send_message("The custom history source is not enabled.", ephemeral=True)
            return
        existing = store.get_entry(entry_id)
        if existing is None:
            await interaction.response.send_message(f"Entry #{entry_id} does not exist.", ephemeral=True)
            return
        if existing.was_removed():
            await interaction.response.send_message(f"Entry #{entry_id} was already removed.", ephemeral=True)
            return
        store.mark_removed(entry_id, str(interaction.user.id), str(interaction.user), reason)
        await interaction.response.send_message(f"Entry #{entry_id} has been removed.", ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(History(bot))  # type: ignore[arg-type]
