"""
bittap.engine.errors — Game Error Taxonomy
===========================================

Every failure an engine operation can surface to a caller.  Each class
carries the HTTP status the API maps it to; the bot just shows the message.

* :class:`AccountNotFound` — a mutation targeted an unknown account.  Read
  paths never raise it; they fall back to the zero-state view.
* :class:`InvalidState` — the request is well-formed but illegal right now
  (run already active, out of energy, self-referral, can't afford, …).
* :class:`Unauthorized` — operator-only action by someone else.  The message
  is fixed so nothing about the target leaks.
* :class:`PersistenceFailure` — the store is unreachable or rejected a write
  for a reason other than an expected uniqueness no-op.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for errors reported back to the caller."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AccountNotFound(GameError):
    status_code = 404

    def __init__(self, account_id: int) -> None:
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class InvalidState(GameError):
    status_code = 409


class Unauthorized(GameError):
    status_code = 403

    DENIAL = "You don't have access to this command."

    def __init__(self, message: str = DENIAL) -> None:
        super().__init__(message)


class PersistenceFailure(GameError):
    status_code = 503
