"""
Golden Credits reward economy engine.

Turns gameplay, login and purchase events into Golden Credits movements on
an append-only ledger, with mastery and streak multipliers, a daily cap,
a login streak calendar and a probability wheel.

Entry point: `golden_credits.core.services.ServiceContainer`, whose
`orchestrator` exposes every external operation.
"""

__version__ = "1.0.0"
