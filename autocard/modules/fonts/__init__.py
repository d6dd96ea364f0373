"""Fonts module - embed bundled font files into card documents."""

from .service import FontService

__all__ = ["FontService"]
