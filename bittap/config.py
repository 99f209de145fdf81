"""
bittap.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for **infrastructure-only** settings (game identity,
bot prefix, operator identity, API port).  Secrets (``DISCORD_TOKEN``,
``DATABASE_URL``, ``JWT_SECRET``) come from the environment / ``.env``.
Economy tuning lives in :mod:`bittap.constants` and
:mod:`bittap.engine.progression`.

Usage::

    from bittap.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.game_name)         # "BitTap"
    print(cfg.operator_id)       # 1101048962
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BitTapConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    game_name: str
    game_tagline: str

    # Chat bot
    bot_prefix: str

    # The single account allowed to run administrative commands
    operator_id: int

    # HTTP API
    api_port: int

    # Optional
    web_app_url: str | None = None  # Where /play points
    leaderboard_size: int = 10


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BitTapConfig:
    """Read *path* and return a :class:`BitTapConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    return BitTapConfig(
        game_name=raw["game_name"],
        game_tagline=raw.get("game_tagline", ""),
        bot_prefix=raw["bot_prefix"],
        operator_id=int(raw["operator_id"]),
        api_port=int(raw.get("api_port", 3000)),
        web_app_url=raw.get("web_app_url") or None,
        leaderboard_size=int(raw.get("leaderboard_size", 10)),
    )
