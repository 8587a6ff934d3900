"""
Shared building blocks for the economy modules.

Import concrete helpers from their modules:
- golden_credits.modules.shared.exceptions
- golden_credits.modules.shared.base_service
- golden_credits.modules.shared.base_repository
- golden_credits.modules.shared.account_repository
"""
