"""
Persistence layer: SQLAlchemy models for accounts, ledger and progression.
"""
