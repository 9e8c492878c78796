# services/__init__.py
"""services package initializer — one FastAPI app per service, explicit exports only."""

__all__ = ["assessment", "certificates"]
