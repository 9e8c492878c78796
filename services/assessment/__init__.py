# services/assessment/__init__.py
"""assessment services package initializer — explicit exports only; no runtime side effects."""

__all__ = ["app", "scorer"]
