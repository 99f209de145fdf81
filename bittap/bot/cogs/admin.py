"""
bittap.bot.cogs.admin — Operator Slash Commands
================================================

Slash commands reserved for the single configured operator:
- /admin-stats — totals across every account
- /admin-top — leaderboard by lifetime coins
- /admin-reset — restore an account's economy to defaults (audit-logged)
- /operator-token — mint a short-lived JWT for the admin HTTP routes

Everyone else gets the same fixed denial, whatever the command.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from bittap.constants import CURRENCY_SYMBOL, RANK_BADGES
from bittap.database.engine import run_db
from bittap.engine.errors import GameError, Unauthorized
from bittap.services.account_service import reset_account
from bittap.services.stats_service import global_stats, leaderboard

if TYPE_CHECKING:
    from bittap.bot.core import BitTapBot

logger = logging.getLogger(__name__)


def is_operator():
    """Decorator that checks the invoker is the configured operator."""
    async def predicate(interaction: discord.Interaction) -> bool:
        bot: BitTapBot = interaction.client  # type: ignore[assignment]
        return interaction.user.id == bot.cfg.operator_id
    return app_commands.check(predicate)


class Admin(commands.Cog, name="Admin"):
    """Operator-only inspection and maintenance."""

    def __init__(self, bot: BitTapBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # /admin-stats
    # -------------------------------------------------------------------
    @app_commands.command(name="admin-stats", description="Global game statistics.")
    @is_operator()
    async def admin_stats(self, interaction: discord.Interaction) -> None:
        stats = await run_db(global_stats, self.bot.engine)
        embed = discord.Embed(title="\U0001f4ca Game Stats", color=discord.Color.blue())
        embed.add_field(name="Accounts", value=f"{stats['total_accounts']:,}", inline=True)
        embed.add_field(
            name="Coins mined",
            value=f"{stats['total_coins']:,} {CURRENCY_SYMBOL}",
            inline=True,
        )
        embed.add_field(name="Referrals", value=f"{stats['total_referrals']:,}", inline=True)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    # -------------------------------------------------------------------
    # /admin-top
    # -------------------------------------------------------------------
    @app_commands.command(name="admin-top", description="Top accounts by lifetime coins.")
    @app_commands.describe(limit="How many accounts to show (1-25)")
    @is_operator()
    async def admin_top(
        self,
        interaction: discord.Interaction,
        limit: app_commands.Range[int, 1, 25] | None = None,
    ) -> None:
        rows = await run_db(
            leaderboard, self.bot.engine, limit or self.bot.cfg.leaderboard_size,
        )
        if not rows:
            await interaction.response.send_message("No accounts yet.", ephemeral=True)
            return

        lines = []
        for i, row in enumerate(rows):
            badge = RANK_BADGES[i] if i < len(RANK_BADGES) else f"**{i + 1}.**"
            name = row["displayName"] or str(row["id"])
            lines.append(f"{badge} {name} — {row['totalCoins']:,} {CURRENCY_SYMBOL}")
        embed = discord.Embed(
            title="\U0001f3c6 Top Miners",
            description="\n".join(lines),
            color=discord.Color.gold(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    # -------------------------------------------------------------------
    # /admin-reset
    # -------------------------------------------------------------------
    @app_commands.command(name="admin-reset", description="Reset an account's progress.")
    @app_commands.describe(account_id="The account (user) id to reset")
    @is_operator()
    async def admin_reset(self, interaction: discord.Interaction, account_id: str) -> None:
        if not account_id.isdigit():
            await interaction.response.send_message(
                "❌ Account ids are numeric.", ephemeral=True,
            )
            return

        found = await run_db(
            reset_account,
            self.bot.engine,
            int(account_id),
            actor_id=interaction.user.id,
            operator_id=self.bot.cfg.operator_id,
        )
        if not found:
            await interaction.response.send_message(
                f"\U0001f50d No account with id {account_id}.", ephemeral=True,
            )
            return
        await interaction.response.send_message(
            f"✅ Account {account_id} has been reset.", ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /operator-token
    # -------------------------------------------------------------------
    @app_commands.command(
        name="operator-token",
        description="Get a short-lived token for the admin HTTP API.",
    )
    @is_operator()
    async def operator_token(self, interaction: discord.Interaction) -> None:
        try:
            # Lazy import: bittap.api.deps validates JWT_SECRET at import time
            from bittap.api.auth import issue_operator_token
        except RuntimeError as exc:
            logger.error("Cannot issue operator token: %s", exc)
            await interaction.response.send_message(
                "❌ JWT_SECRET is not configured on this host.", ephemeral=True,
            )
            return

        token = issue_operator_token(interaction.user.id, interaction.user.name)
        await interaction.response.send_message(
            f"Bearer token (valid 12 hours):\n```\n{token}\n```", ephemeral=True,
        )

    # -------------------------------------------------------------------
    # Error handler for non-operators
    # -------------------------------------------------------------------
    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            logger.warning("Denied %s for %d", interaction.command and interaction.command.name,
                           interaction.user.id)
            await interaction.response.send_message(Unauthorized.DENIAL, ephemeral=True)
            return
        original = getattr(error, "original", error)
        if isinstance(original, GameError):
            await interaction.response.send_message(f"❌ {original.message}", ephemeral=True)
        else:
            raise error


async def setup(bot: BitTapBot) -> None:
    await bot.add_cog(Admin(bot))
