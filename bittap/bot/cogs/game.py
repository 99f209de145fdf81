"""
bittap.bot.cogs.game — Player Commands
=======================================

Hybrid commands for players:
- /start [referral] — Register (idempotent) and optionally credit a referrer
- /profile — Coins, energy, and upgrade tiers
- /referral — Your referral token and how many people used it
- /play — Link to the tapping web app

Gameplay itself (taps, upgrades, auto-mining) happens through the HTTP API.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from bittap.constants import CURRENCY_SYMBOL
from bittap.database.engine import get_session, run_db
from bittap.database.models import Account
from bittap.engine.clock import resolve_now
from bittap.engine.errors import GameError
from bittap.engine.mining import MiningState, mining_state, seconds_remaining
from bittap.services.account_service import register_account
from bittap.services.energy_service import reconcile_in_session
from bittap.services.referral_service import count_referrals, referral_token

if TYPE_CHECKING:
    from bittap.bot.core import BitTapBot

logger = logging.getLogger(__name__)


def _play_view(url: str | None) -> discord.ui.View | None:
    if not url:
        return None
    view = discord.ui.View()
    view.add_item(discord.ui.Button(label="Play", style=discord.ButtonStyle.link, url=url))
    return view


def _mining_status(state: MiningState, seconds_left: int) -> str:
    if state is MiningState.RUNNING:
        hours, rem = divmod(seconds_left, 3600)
        return f"running, {hours}h {rem // 60}m left"
    if state is MiningState.COMPLETED:
        return "finished, claim it in the app"
    return "idle"


class Game(commands.Cog, name="Game"):
    """Registration, profile, and referral commands."""

    def __init__(self, bot: BitTapBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # DB helpers
    # -------------------------------------------------------------------
    def _get_profile(self, account_id: int, now: datetime | None = None) -> dict:
        """Bring energy up to date, then read the account."""
        now = resolve_now(now)
        with get_session(self.bot.engine) as session:
            if reconcile_in_session(session, account_id, now) is None:
                return {"found": False}
            account = session.get(Account, account_id, populate_existing=True)
            return {
                "found": True,
                "coins": account.coins,
                "total_coins": account.total_coins,
                "click_power": account.click_power,
                "boost_level": account.boost_level,
                "energy": account.energy,
                "max_energy": account.max_energy,
                "energy_level": account.energy_level,
                "auto_mining_level": account.auto_mining_level,
                "mining_state": mining_state(account.auto_mining_end, now),
                "mining_seconds_left": seconds_remaining(account.auto_mining_end, now),
            }

    # -------------------------------------------------------------------
    # /start
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="start",
        description="Join the game (optionally with a friend's referral token).",
    )
    @app_commands.describe(referral="A referral token such as ref123456")
    async def start(self, ctx: commands.Context, referral: str | None = None) -> None:
        result = await run_db(
            register_account,
            self.bot.engine,
            ctx.author.id,
            ctx.author.display_name,
            referral_token=referral,
        )

        cfg = self.bot.cfg
        if result.created:
            description = f"Welcome to **{cfg.game_name}**, {ctx.author.display_name}!"
        else:
            description = f"Welcome back, {ctx.author.display_name}!"
        embed = discord.Embed(
            title=f"⛏️ {cfg.game_name}",
            description=f"{description}\n{cfg.game_tagline}".strip(),
            color=discord.Color.gold(),
        )
        if result.referral_credited:
            embed.add_field(
                name="Referral",
                value="Your friend got a bonus for inviting you.",
                inline=False,
            )
        embed.set_footer(text="Use /play to start tapping.")
        view = _play_view(cfg.web_app_url)
        if view is not None:
            await ctx.send(embed=embed, view=view)
        else:
            await ctx.send(embed=embed)

    # -------------------------------------------------------------------
    # /profile
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="profile",
        description="View your coins, energy, and upgrades.",
    )
    async def profile(self, ctx: commands.Context) -> None:
        data = await run_db(self._get_profile, ctx.author.id)
        if not data["found"]:
            await ctx.send(
                "\U0001f50d You haven't joined yet. Use /start first.",
                ephemeral=True,
            )
            return

        embed = discord.Embed(
            title=f"\U0001f4b0 {ctx.author.display_name}'s Profile",
            color=discord.Color.gold(),
        )
        embed.add_field(
            name="Coins",
            value=f"{data['coins']:,} {CURRENCY_SYMBOL}\n"
                  f"Lifetime: {data['total_coins']:,}",
            inline=True,
        )
        embed.add_field(
            name="Energy",
            value=f"{data['energy']:,} / {data['max_energy']:,}\n"
                  f"Level {data['energy_level']}",
            inline=True,
        )
        embed.add_field(
            name="Click Power",
            value=f"{data['click_power']} per tap\nLevel {data['boost_level']}",
            inline=True,
        )
        if data["auto_mining_level"] > 0:
            status = _mining_status(data["mining_state"], data["mining_seconds_left"])
            embed.add_field(
                name="Auto-Mining",
                value=f"Level {data['auto_mining_level']} ({status})",
                inline=True,
            )
        await ctx.send(embed=embed)

    # -------------------------------------------------------------------
    # /referral
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="referral",
        description="Get your referral token.",
    )
    async def referral(self, ctx: commands.Context) -> None:
        token = referral_token(ctx.author.id)
        count = await run_db(count_referrals, self.bot.engine, ctx.author.id)
        embed = discord.Embed(
            title="\U0001f91d Invite Friends",
            description=(
                f"Friends who join with `/start {token}` earn you a bonus.\n"
                f"Referrals so far: **{count}**"
            ),
            color=discord.Color.green(),
        )
        await ctx.send(embed=embed, ephemeral=True)

    # -------------------------------------------------------------------
    # /play
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="play",
        description="Open the tapping app.",
    )
    async def play(self, ctx: commands.Context) -> None:
        view = _play_view(self.bot.cfg.web_app_url)
        if view is None:
            await ctx.send("The web app isn't configured yet.", ephemeral=True)
            return
        await ctx.send(f"Tap to earn {CURRENCY_SYMBOL}!", view=view)

    # -------------------------------------------------------------------
    # Error handler
    # -------------------------------------------------------------------
    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        original = getattr(error, "original", error)
        # Hybrid commands wrap twice (HybridCommandError -> CommandInvokeError)
        original = getattr(original, "original", original)
        if isinstance(original, GameError):
            await ctx.send(f"❌ {original.message}", ephemeral=True)
        else:
            raise error


async def setup(bot: BitTapBot) -> None:
    await bot.add_cog(Game(bot))
