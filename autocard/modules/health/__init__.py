"""Health module - liveness probe."""

from .router import router

__all__ = ["router"]
