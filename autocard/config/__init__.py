"""
Configuration access.

``get_settings()`` returns a process-wide instance. Tests swap it with
``init_settings()`` and drop it with ``reset_settings()``.
"""

from .settings import Settings

_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment once."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def init_settings(settings: Settings) -> Settings:
    """Install an explicit settings instance."""
    global _settings
    _settings = settings
    return settings


def reset_settings() -> None:
    """Forget cached settings so the next access reloads them."""
    global _settings
    _settings = None


__all__ = ["Settings", "get_settings", "init_settings", "reset_settings"]
