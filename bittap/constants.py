"""
bittap.constants — Economy Policy Constants
============================================

Single source of truth for the fixed economy rules and the default state of
a freshly created account.  Import from here instead of duplicating numbers
in cogs, services, and routes.
"""

from __future__ import annotations

from datetime import timedelta

# ---------------------------------------------------------------------------
# Energy
# ---------------------------------------------------------------------------
ENERGY_REGEN_PER_SECOND = 1
ENERGY_PER_TAP = 1

# ---------------------------------------------------------------------------
# Auto-mining
# ---------------------------------------------------------------------------
AUTO_MINING_DURATION = timedelta(hours=8)
# Coins per auto-mining level paid for one completed run
PAYOUT_HOURS = 8

# ---------------------------------------------------------------------------
# Referrals
# ---------------------------------------------------------------------------
REFERRAL_BONUS = 5000
REFERRAL_TOKEN_PREFIX = "ref"

# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------
MAX_CAS_ATTEMPTS = 5

# ---------------------------------------------------------------------------
# Account defaults (creation and operator reset)
# ---------------------------------------------------------------------------
DEFAULT_COINS = 0
DEFAULT_CLICK_POWER = 1
DEFAULT_BOOST_LEVEL = 1
DEFAULT_MAX_ENERGY = 1000
DEFAULT_ENERGY_LEVEL = 1
DEFAULT_AUTO_MINING_LEVEL = 0

# ---------------------------------------------------------------------------
# Presentation (bot embeds)
# ---------------------------------------------------------------------------
CURRENCY_SYMBOL = "$BIT"
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
