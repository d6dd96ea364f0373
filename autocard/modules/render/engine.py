"""Rendering engine - HTML document to PNG using Playwright Chromium."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from autocard.config import Settings, get_settings
from autocard.shared.errors import RenderEngineError
from autocard.shared.logging import get_logger

from .layout import RenderedDocument

logger = get_logger(__name__)


MEDIA_SELECTOR = "img.media"

# Resolves once the card image has finished loading or failed to load.
MEDIA_READY_JS = """
(selector) => {
    const img = document.querySelector(selector);
    return !img || img.complete;
}
"""

# Two animation frames: one for layout, one for paint.
PAINT_SETTLE_JS = """
() => new Promise((resolve) =>
    requestAnimationFrame(() => requestAnimationFrame(() => resolve(true)))
)
"""


class EngineState(str, Enum):
    IDLE = "idle"
    LAUNCHED = "launched"
    CONTENT_LOADED = "content_loaded"
    READY = "ready"
    CAPTURED = "captured"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class RenderResult:
    """Captured PNG and the CSS pixel size it was rendered at."""
    png: bytes
    width: int
    height: int


class RenderEngine:
    """
    Drive one headless Chromium instance through a single capture.

    An engine is owned by exactly one request. The browser is closed on every
    exit path. ``playwright_factory`` defaults to ``async_playwright`` and
    exists so tests can substitute a fake driver.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.settings = settings or get_settings()
        self._playwright_factory = playwright_factory
        self.state = EngineState.IDLE
        self.history: list[EngineState] = [EngineState.IDLE]

    def _transition(self, state: EngineState) -> None:
        self.state = state
        self.history.append(state)

    async def render(self, document: RenderedDocument) -> RenderResult:
        """
        Render a document to PNG bytes.

        Raises:
            RenderEngineError: launch, content load or capture failed
        """
        if self.state is not EngineState.IDLE:
            raise RuntimeError("RenderEngine instances are single-use")

        settings = self.settings
        logger.info(
            f"Rendering {document.width}x{document.height}px "
            f"@{settings.device_scale_factor}x (media={document.has_media})"
        )

        try:
            async with self._playwright_factory() as p:
                browser = await p.chromium.launch(
                    headless=True,
                    args=settings.chromium_args,
                    executable_path=settings.chromium_executable_path,
                )

                try:
                    context = await browser.new_context(
                        viewport={"width": document.width, "height": document.height},
                        device_scale_factor=settings.device_scale_factor,
                    )
                    page = await context.new_page()
                    self._transition(EngineState.LAUNCHED)

                    await page.set_content(
                        document.html,
                        wait_until="networkidle",
                        timeout=settings.navigation_timeout_ms,
                    )
                    self._transition(EngineState.CONTENT_LOADED)

                    await self._wait_ready(page, document)
                    self._transition(EngineState.READY)

                    png = await page.screenshot(type="png", full_page=False)
                    self._transition(EngineState.CAPTURED)

                finally:
                    await browser.close()

        except Exception as e:
            self._transition(EngineState.ERROR)
            logger.error(f"Render engine failed in state {self.history[-2].value}: {e}")
            raise RenderEngineError(str(e) or type(e).__name__) from e

        finally:
            self._transition(EngineState.CLOSED)

        logger.info(f"Captured PNG: {len(png)} bytes")
        return RenderResult(png=png, width=document.width, height=document.height)

    async def _wait_ready(self, page: Any, document: RenderedDocument) -> None:
        """Wait for the card image (bounded) and for paint to settle."""
        if document.has_media:
            try:
                await page.wait_for_function(
                    MEDIA_READY_JS,
                    arg=MEDIA_SELECTOR,
                    timeout=self.settings.media_ready_timeout_ms,
                )
            except PlaywrightTimeoutError:
                logger.warning(
                    f"Image not ready after {self.settings.media_ready_timeout_ms}ms, "
                    "capturing anyway"
                )

        await page.evaluate(PAINT_SETTLE_JS)
