"""
Ledger value objects: history filters and read models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from golden_credits.database.models.economy.ledger_transaction import LedgerTransaction
from golden_credits.database.models.enums import HistoryDirection, TransactionSource


@dataclass(frozen=True)
class HistoryFilter:
    """
    AND-combined history criteria.

    `start` is inclusive, `end` exclusive. `limit` bounds the number of rows
    yielded; None means all matching rows.
    """

    source: Optional[TransactionSource] = None
    direction: Optional[HistoryDirection] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: Optional[int] = None
    newest_first: bool = True

    def __post_init__(self) -> None:
        if self.source is not None and not isinstance(self.source, TransactionSource):
            object.__setattr__(self, "source", TransactionSource(self.source))
        if self.direction is not None and not isinstance(self.direction, HistoryDirection):
            object.__setattr__(self, "direction", HistoryDirection(self.direction))


@dataclass(frozen=True)
class TransactionView:
    id: int
    account_id: str
    timestamp: datetime
    amount: int
    source: TransactionSource
    game_id: Optional[str]
    description: str
    balance_after: int

    @classmethod
    def from_model(cls, row: LedgerTransaction) -> "TransactionView":
        return cls(
            id=row.id,
            account_id=row.account_id,
            timestamp=row.timestamp,
            amount=row.amount,
            source=TransactionSource(row.source),
            game_id=row.game_id,
            description=row.description,
            balance_after=row.balance_after,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "timestamp": self.timestamp.isoformat(),
            "amount": self.amount,
            "source": self.source.value,
            "game_id": self.game_id,
            "description": self.description,
            "balance_after": self.balance_after,
        }


@dataclass(frozen=True)
class WalletStats:
    account_id: str
    balance: int
    total_earned: int
    total_spent: int
    transaction_count: int
    highest_credit: int
    last_transaction: Optional[TransactionView]


@dataclass(frozen=True)
class ReconciliationReport:
    account_id: str
    ledger_sum: int
    recorded_balance: int
    transaction_count: int

    @property
    def consistent(self) -> bool:
        return self.ledger_sum == self.recorded_balance and self.recorded_balance >= 0
