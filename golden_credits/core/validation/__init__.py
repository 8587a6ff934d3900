from golden_credits.core.validation.input_validator import InputValidator

__all__ = ["InputValidator"]
