"""Shared pytest fixtures for AutoCard tests."""

from collections.abc import Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from autocard.app import build_app
from autocard.config import Settings, init_settings, reset_settings
from autocard.modules.fonts import FontService
from autocard.modules.render.engine import RenderResult
from autocard.modules.render.images import ImageFetcher
from autocard.modules.render.layout import RenderedDocument, TemplateRenderer
from autocard.modules.render.router import get_service
from autocard.modules.render.service import RenderService
from autocard.modules.render.storage import StorageBackend
from autocard.shared.errors import RenderEngineError, StorageError

FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
FAKE_JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 32

IMAGE_URL = "https://images.example.com/photo.jpg"
MISSING_IMAGE_URL = "https://images.example.com/missing.jpg"


def image_handler(request: httpx.Request) -> httpx.Response:
    """Tiny fake image host."""
    if request.url.path == "/photo.jpg":
        return httpx.Response(200, content=FAKE_JPEG, headers={"Content-Type": "image/jpeg"})
    if request.url.path == "/photo.webp":
        return httpx.Response(200, content=b"RIFFxxxxWEBP")
    return httpx.Response(404, text="not found")


class FakeEngine:
    """Stands in for RenderEngine; remembers the documents it was given."""

    def __init__(self, documents: list[RenderedDocument], fail: bool = False):
        self.documents = documents
        self.fail = fail

    async def render(self, document: RenderedDocument) -> RenderResult:
        self.documents.append(document)
        if self.fail:
            raise RenderEngineError("Browser closed unexpectedly")
        return RenderResult(png=FAKE_PNG, width=document.width, height=document.height)


class MemoryStorage(StorageBackend):
    """Storage backend that keeps objects in a dict."""

    def __init__(self, fail: bool = False):
        self.objects: dict[str, bytes] = {}
        self.fail = fail

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise StorageError("bucket unavailable")
        self.objects[key] = data
        return f"https://cdn.example.com/{key}"


@pytest.fixture
def settings() -> Generator[Settings, None, None]:
    """Fresh settings with storage disabled and no bundled fonts."""
    reset_settings()
    test_settings = Settings(storage_backend="none", fonts_dir=None, log_level="DEBUG")
    init_settings(test_settings)
    yield test_settings
    reset_settings()


@pytest.fixture
def rendered_documents() -> list[RenderedDocument]:
    return []


@pytest.fixture
def make_service(settings: Settings, rendered_documents: list[RenderedDocument]):
    """Factory for a RenderService wired to fakes."""

    def factory(storage: StorageBackend | None = None, engine_fails: bool = False) -> RenderService:
        return RenderService(
            settings=settings,
            fetcher=ImageFetcher(settings, transport=httpx.MockTransport(image_handler)),
            renderer=TemplateRenderer(FontService(fonts_dir=None)),
            storage=storage,
            engine_factory=lambda: FakeEngine(rendered_documents, fail=engine_fails),
        )

    return factory


@pytest.fixture
def client(settings: Settings, make_service) -> Generator[TestClient, None, None]:
    """Test client whose render service uses fake network, engine and no storage."""
    app = build_app(settings)
    app.dependency_overrides[get_service] = lambda: make_service()

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path
