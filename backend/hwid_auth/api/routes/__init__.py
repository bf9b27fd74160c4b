"""API route modules (device-facing and admin)."""

__all__ = [
    "devices",
    "admin",
]
