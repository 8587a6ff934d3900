"""
Database Model Enums
====================

Type-safe constants for categorical columns. Values are stored as plain
strings so the ledger stays readable in SQL and CSV exports.
"""

from __future__ import annotations

import enum


class TransactionSource(str, enum.Enum):
    """
    Origin of a ledger movement.

    Positive amounts: GAME_REWARD, DAILY_LOGIN, MILESTONE, WHEEL_SPIN,
    REFERRAL. Negative amounts: WHEEL_PURCHASE, GAME_UNLOCK.
    MANUAL_ADJUSTMENT may go either way.
    """

    GAME_REWARD = "game-reward"
    DAILY_LOGIN = "daily-login"
    MILESTONE = "milestone"
    WHEEL_SPIN = "wheel-spin"
    WHEEL_PURCHASE = "wheel-purchase"
    GAME_UNLOCK = "game-unlock"
    REFERRAL = "referral"
    MANUAL_ADJUSTMENT = "manual-adjustment"


class SpinType(str, enum.Enum):
    FREE = "free"
    PAID = "paid"


class ClaimType(str, enum.Enum):
    """Idempotency namespaces in the reward_claims table."""

    STREAK_MILESTONE = "streak_milestone"
    REFERRAL_BONUS = "referral_bonus"


class HistoryDirection(str, enum.Enum):
    EARNED = "earned"
    SPENT = "spent"
