"""
Core infrastructure layer for the Golden Credits engine.

- Configuration (Config, ConfigManager)
- Database subsystem (DatabaseService, declarative base)
- Redis subsystem (RedisService for cross-process locks)
- Per-account locking (AccountLockManager)
- Logging (structured logging, LogContext)
- Events (EventBus)
- Validation (InputValidator)
- Infrastructure exceptions

Import from the subpackages directly; this module re-exports nothing so
that importing one subsystem never initializes another.
"""
