from golden_credits.core.services.container import ServiceContainer

__all__ = ["ServiceContainer"]
