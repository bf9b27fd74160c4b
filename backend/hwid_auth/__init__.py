"""HWID device-authorization service (explicit package marker)."""

__all__ = [
    "api",
    "core",
    "db",
    "models",
    "repos",
    "schemas",
    "services",
    "tools",
]
