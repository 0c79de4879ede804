import discord
from discord import app_commands


def is_staff():
    async def predicate(interaction: discord.Interaction) -> bool:
        guild = interaction.guild
        if guild is None:
            raise app_commands.CheckFailure("Command can only be used in a guild")
        member = interaction.user
        if not isinstance(member, discord.Member):
            raise app_commands.CheckFailure("Invalid member")
        if guild.owner_id == member.id or member.guild_permissions.administrator:
            return True
        client = interaction.client
        config = getattr(client, "config", None)
        if config is not None:
            if config.owner_ids and member.id in config.owner_ids:
                return True
            if config.staff_role_ids:
                member_role_ids = {role.id for role in member.roles}
                for required_id in config.staff_role_ids:
                    if required_id in member_role_ids:
                        return True
        raise app_commands.CheckFailure("You do not have permission to use this command")

    return app_commands.check(predicate)
