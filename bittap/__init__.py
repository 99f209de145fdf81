"""
BitTap — Tap-to-Earn Game Economy
==================================
A chat bot and a JSON API sharing one per-account game state: coin balance,
a time-regenerating energy pool, timed auto-mining runs, referral bonuses,
and upgrade tiers.  All time-based accrual is computed lazily on request;
there is no background ticker.

Package layout::

    bittap/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Economy policy constants
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session helper, async bridge
    │   └── models.py      # Account, ReferralCredit, AdminLog
    ├── engine/
    │   ├── clock.py       # UTC helpers
    │   ├── energy.py      # Energy regeneration math
    │   ├── mining.py      # Auto-mining state machine
    │   ├── progression.py # Server-side pricing table
    │   └── errors.py      # GameError taxonomy
    ├── services/
    │   ├── account_service.py     # Registration, snapshots, operator reset
    │   ├── energy_service.py      # Energy reconcile (CAS)
    │   ├── mining_service.py      # Start / claim auto-mining
    │   ├── tap_service.py         # Tap ledger
    │   ├── referral_service.py    # One-time referral credit
    │   ├── progression_service.py # Upgrade purchases
    │   └── stats_service.py       # Global stats + leaderboard
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   └── cogs/
    │       ├── game.py    # /start, /profile, /referral, /play
    │       └── admin.py   # Operator-only commands
    └── api/
        ├── __main__.py    # python -m bittap.api (uvicorn on api_port)
        ├── main.py        # FastAPI app
        ├── auth.py        # Operator JWT issuance
        └── routes/        # User, public and admin endpoints
"""

__version__ = "0.1.0"
