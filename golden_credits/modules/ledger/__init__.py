from golden_credits.modules.ledger.schemas import (
    HistoryFilter,
    ReconciliationReport,
    TransactionView,
    WalletStats,
)
from golden_credits.modules.ledger.service import LedgerService, TransactionHistory

__all__ = [
    "HistoryFilter",
    "ReconciliationReport",
    "TransactionView",
    "WalletStats",
    "LedgerService",
    "TransactionHistory",
]
