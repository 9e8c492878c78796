# services/certificates/__init__.py
"""certificates services package initializer — explicit exports only; no runtime side effects."""

__all__ = ["app", "issuer"]
