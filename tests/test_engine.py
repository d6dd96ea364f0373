"""Tests for the Playwright rendering engine adapter, using a fake driver."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from autocard.config import Settings
from autocard.modules.render.engine import EngineState, RenderEngine
from autocard.modules.render.layout import RenderedDocument
from autocard.shared.errors import RenderEngineError

PNG = b"\x89PNG\r\n\x1a\nfake"


class FakePage:
    def __init__(self, driver: "FakePlaywright"):
        self.driver = driver

    async def set_content(self, html, wait_until=None, timeout=None):
        self.driver.calls.append(("set_content", wait_until))
        if self.driver.fail_on == "set_content":
            raise PlaywrightError("net::ERR_ABORTED")

    async def wait_for_function(self, expression, arg=None, timeout=None):
        self.driver.calls.append(("wait_for_function", arg, timeout))
        if self.driver.media_times_out:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def evaluate(self, expression):
        self.driver.calls.append(("evaluate",))
        return True

    async def screenshot(self, type=None, full_page=None):
        self.driver.calls.append(("screenshot", type, full_page))
        if self.driver.fail_on == "screenshot":
            raise PlaywrightError("Target closed")
        return PNG


class FakeContext:
    def __init__(self, driver: "FakePlaywright"):
        self.driver = driver

    async def new_page(self):
        return FakePage(self.driver)


class FakeBrowser:
    def __init__(self, driver: "FakePlaywright"):
        self.driver = driver
        self.closed = False

    async def new_context(self, viewport=None, device_scale_factor=None):
        self.driver.calls.append(("new_context", viewport, device_scale_factor))
        return FakeContext(self.driver)

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, driver: "FakePlaywright"):
        self.driver = driver

    async def launch(self, **kwargs):
        self.driver.calls.append(("launch", kwargs.get("headless")))
        if self.driver.fail_on == "launch":
            raise PlaywrightError("Executable doesn't exist")
        self.driver.browser = FakeBrowser(self.driver)
        return self.driver.browser


class FakePlaywright:
    """Mimics ``async_playwright()``: an async context manager exposing ``chromium``."""

    def __init__(self, fail_on: str | None = None, media_times_out: bool = False):
        self.fail_on = fail_on
        self.media_times_out = media_times_out
        self.calls: list[tuple] = []
        self.browser: FakeBrowser | None = None
        self.chromium = FakeChromium(self)
        self.exited = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.exited = True
        return False


def _engine(driver: FakePlaywright, **overrides) -> RenderEngine:
    return RenderEngine(Settings(**overrides), playwright_factory=lambda: driver)


def _doc(has_media: bool = False) -> RenderedDocument:
    return RenderedDocument(html="<html></html>", width=1080, height=1350, has_media=has_media)


def _names(driver: FakePlaywright) -> list[str]:
    return [c[0] for c in driver.calls]


class TestLifecycle:

    def test_happy_path_walks_every_state(self) -> None:
        driver = FakePlaywright()
        engine = _engine(driver)

        result = asyncio.run(engine.render(_doc()))

        assert result.png == PNG
        assert (result.width, result.height) == (1080, 1350)
        assert engine.history == [
            EngineState.IDLE,
            EngineState.LAUNCHED,
            EngineState.CONTENT_LOADED,
            EngineState.READY,
            EngineState.CAPTURED,
            EngineState.CLOSED,
        ]
        assert driver.browser.closed is True
        assert driver.exited is True

    def test_viewport_and_scale(self) -> None:
        driver = FakePlaywright()
        asyncio.run(_engine(driver, device_scale_factor=2.0).render(_doc()))

        new_context = next(c for c in driver.calls if c[0] == "new_context")
        assert new_context[1] == {"width": 1080, "height": 1350}
        assert new_context[2] == 2.0
        assert ("launch", True) in driver.calls
        assert ("set_content", "networkidle") in driver.calls
        assert ("screenshot", "png", False) in driver.calls

    def test_engine_is_single_use(self) -> None:
        engine = _engine(FakePlaywright())
        asyncio.run(engine.render(_doc()))
        with pytest.raises(RuntimeError):
            asyncio.run(engine.render(_doc()))


class TestReadiness:

    def test_no_media_skips_image_wait(self) -> None:
        driver = FakePlaywright()
        asyncio.run(_engine(driver).render(_doc(has_media=False)))
        assert "wait_for_function" not in _names(driver)
        assert "evaluate" in _names(driver)

    def test_media_wait_is_bounded(self) -> None:
        driver = FakePlaywright()
        asyncio.run(_engine(driver, media_ready_timeout_ms=1234).render(_doc(has_media=True)))

        wait = next(c for c in driver.calls if c[0] == "wait_for_function")
        assert wait[1] == "img.media"
        assert wait[2] == 1234

    def test_media_timeout_is_tolerated(self) -> None:
        driver = FakePlaywright(media_times_out=True)
        engine = _engine(driver)

        result = asyncio.run(engine.render(_doc(has_media=True)))

        assert result.png == PNG
        assert EngineState.CAPTURED in engine.history
        names = _names(driver)
        assert names.index("wait_for_function") < names.index("evaluate") < names.index("screenshot")


class TestFailures:

    @pytest.mark.parametrize("stage", ["launch", "set_content", "screenshot"])
    def test_failures_are_fatal_and_engine_closes(self, stage: str) -> None:
        driver = FakePlaywright(fail_on=stage)
        engine = _engine(driver)

        with pytest.raises(RenderEngineError) as exc_info:
            asyncio.run(engine.render(_doc()))

        assert exc_info.value.http_status == 500
        assert exc_info.value.detail
        assert engine.history[-2] is EngineState.ERROR
        assert engine.state is EngineState.CLOSED
        assert driver.exited is True
        if driver.browser is not None:
            assert driver.browser.closed is True
