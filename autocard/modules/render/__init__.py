"""Render module - structured content to social media card PNGs using Playwright."""

from .router import router
from .schemas import RenderRequest, RenderResponse
from .service import RenderOutcome, RenderService

__all__ = ["router", "RenderService", "RenderOutcome", "RenderRequest", "RenderResponse"]
