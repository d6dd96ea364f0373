"""Render service - request in, packaged PNG out."""

import asyncio
from dataclasses import dataclass

from autocard.config import Settings, get_settings
from autocard.shared.logging import get_logger

from .engine import RenderEngine
from .images import ImageAsset, ImageFetcher
from .layout import RenderedDocument, TemplateRenderer
from .output import OutputArtifact, OutputPackager
from .sanitize import sanitize_request
from .schemas import RenderRequest
from .storage import StorageBackend, build_storage
from .styles import STYLE_CONFIGS, CardStyle, StyleSignals, build_rules, resolve_style

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderOutcome:
    """Everything the router needs to build a response."""
    style: CardStyle
    width: int
    height: int
    artifact: OutputArtifact
    image: ImageAsset


class RenderService:
    """
    Orchestrate the card pipeline:

    style resolution -> (sanitize || image fetch) -> layout -> engine -> output

    Collaborators can be injected; by default they are built from settings.
    A fresh ``RenderEngine`` is created for every render.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: ImageFetcher | None = None,
        renderer: TemplateRenderer | None = None,
        storage: StorageBackend | None = None,
        engine_factory=None,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher or ImageFetcher(self.settings)
        self.renderer = renderer or TemplateRenderer()
        if storage is None:
            storage = build_storage(self.settings)
        self.packager = OutputPackager(storage, prefix=self.settings.storage_prefix)
        self.engine_factory = engine_factory or (lambda: RenderEngine(self.settings))
        self.rules = build_rules(
            min_image_url_length=self.settings.auto_min_image_url_length,
            quote_max_words=self.settings.auto_quote_max_words,
        )

    def resolve(self, request: RenderRequest) -> CardStyle:
        """Resolve the request's style (explicit or auto)."""
        signals = StyleSignals(
            image_url=request.image_url,
            cta_button_text=request.cta_button_text,
            text="\n".join(t for t in (request.body, request.caption, request.quote) if t),
        )
        return resolve_style(request.style, signals, self.rules)

    async def compose(self, request: RenderRequest, style: CardStyle) -> tuple[RenderedDocument, ImageAsset]:
        """Sanitize text and acquire the image concurrently, then lay out the card."""
        wants_image = STYLE_CONFIGS[style].media and bool(request.image_url.strip())

        if wants_image:
            content, asset = await asyncio.gather(
                asyncio.to_thread(sanitize_request, request, self.settings),
                self.fetcher.acquire(request.image_url),
            )
        else:
            content, asset = sanitize_request(request, self.settings), ImageAsset()

        document = self.renderer.render(
            style,
            content,
            asset,
            width=request.width,
            height=request.height,
            font_scale=request.font_scale,
            fit=request.fit,
        )
        return document, asset

    async def render(self, request: RenderRequest) -> RenderOutcome:
        """
        Run the full pipeline.

        Raises:
            UnknownStyleError: explicit style is not recognized
            RenderEngineError: the browser failed to produce an image
        """
        style = self.resolve(request)
        logger.info(f"Rendering card style={style.value} (requested {request.style!r})")

        document, asset = await self.compose(request, style)

        engine = self.engine_factory()
        result = await engine.render(document)

        artifact = await self.packager.package(
            result.png,
            mode=request.output_mode,
            filename=request.filename,
            download=request.download,
        )

        return RenderOutcome(
            style=style,
            width=result.width,
            height=result.height,
            artifact=artifact,
            image=asset,
        )
