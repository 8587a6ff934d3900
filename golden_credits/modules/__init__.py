"""
Economy feature modules: rewards, ledger, streak, wheel, orchestrator.
"""
