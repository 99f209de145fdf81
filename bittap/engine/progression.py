"""
bittap.engine.progression — Server-Side Pricing Table
======================================================

THE single canonical price list for upgrades.  Clients may *ask* for a tier
but never tell the server what it costs; the progression service looks the
price up here and checks affordability before touching the balance.

Three upgrade paths, each advancing one tier at a time:

* ``CLICK_POWER`` — ``boost_level`` *n* gives ``click_power = n``.
* ``ENERGY`` — ``energy_level`` *n* gives a pool of
  ``1000 + 500 * (n - 1)``.
* ``AUTO_MINING`` — ``auto_mining_level`` *n* pays ``n * 8`` coins per run.
"""

from __future__ import annotations

import enum

from bittap.constants import DEFAULT_MAX_ENERGY


class UpgradeKind(enum.StrEnum):
    CLICK_POWER = "click_power"
    ENERGY = "energy"
    AUTO_MINING = "auto_mining"


# (base cost for the first purchase, growth factor per tier, max tier)
_PRICING: dict[UpgradeKind, tuple[int, float, int]] = {
    UpgradeKind.CLICK_POWER: (100, 2.0, 25),
    UpgradeKind.ENERGY: (200, 2.0, 20),
    UpgradeKind.AUTO_MINING: (5000, 2.5, 10),
}

ENERGY_PER_LEVEL = 500

# Account column holding the tier for each path
LEVEL_COLUMN: dict[UpgradeKind, str] = {
    UpgradeKind.CLICK_POWER: "boost_level",
    UpgradeKind.ENERGY: "energy_level",
    UpgradeKind.AUTO_MINING: "auto_mining_level",
}


def max_level(kind: UpgradeKind) -> int:
    return _PRICING[kind][2]


def base_level(kind: UpgradeKind) -> int:
    """Tier every account starts at (auto-mining starts unowned)."""
    return 0 if kind is UpgradeKind.AUTO_MINING else 1


def upgrade_cost(kind: UpgradeKind, current_level: int) -> int:
    """Coins needed to go from *current_level* to ``current_level + 1``.

    Uses the exponential formula::

        cost = base * (factor ** purchases_so_far)

    Raises
    ------
    ValueError
        If *current_level* is already at the cap or below the base tier.
    """
    base, factor, cap = _PRICING[kind]
    if current_level >= cap:
        raise ValueError(f"{kind.value} is already at max level {cap}")
    purchases = current_level - base_level(kind)
    if purchases < 0:
        raise ValueError(f"{kind.value} level {current_level} is below the base tier")
    return int(base * (factor ** purchases))


def click_power_for_level(level: int) -> int:
    return max(1, level)


def max_energy_for_level(level: int) -> int:
    return DEFAULT_MAX_ENERGY + ENERGY_PER_LEVEL * (max(1, level) - 1)
