"""
Progression domain ORM models.

Exports:
- DailyLoginState
- SpinRecord
- WheelState
"""

from .daily_login_state import DailyLoginState
from .wheel import SpinRecord, WheelState

__all__ = [
    "DailyLoginState",
    "SpinRecord",
    "WheelState",
]
