from golden_credits.core.locking.account_lock import AccountLockManager, run_to_completion

__all__ = ["AccountLockManager", "run_to_completion"]
