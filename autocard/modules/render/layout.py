"""
Layout renderer - compose one self-contained HTML document per card.

All styles share ``templates/card.html``. A style only chooses which slots
are filled (media, primary text blocks, footer) through ``STYLE_CONFIGS``.
Sizes come from ``ScaleTokens``, multiplied by the request's font scale.
"""

from dataclasses import asdict, dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from autocard.modules.fonts import FontService
from autocard.shared.logging import get_logger

from .images import ImageAsset
from .sanitize import SanitizedContent
from .styles import STYLE_CONFIGS, CardStyle

logger = get_logger(__name__)


TEMPLATES_DIR = Path(__file__).parent / "templates"
CARD_TEMPLATE = "card.html"

MIN_DIMENSION = 600
MAX_DIMENSION = 2000
MIN_FONT_SCALE = 0.6
MAX_FONT_SCALE = 1.4
FIT_MODES = ("cover", "contain")

SYSTEM_FONT_STACK = "-apple-system, Inter, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif"


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_dimension(value: int | None, default: int) -> int:
    """Clamp a pixel dimension to [600, 2000]. ``None`` means default."""
    if value is None:
        value = default
    return int(clamp(int(value), MIN_DIMENSION, MAX_DIMENSION))


def clamp_font_scale(value: float | None) -> float:
    """Clamp the font scale to [0.6, 1.4]. ``None`` means 1.0."""
    if value is None:
        return 1.0
    return round(clamp(float(value), MIN_FONT_SCALE, MAX_FONT_SCALE), 3)


@dataclass(frozen=True)
class ScaleTokens:
    """Spacing, radius and type sizes in CSS pixels."""
    pad: int = 48
    gap: int = 22
    radius: int = 32
    card_pad: int = 28
    shadow: int = 16
    shadow_blur: int = 40
    rule: int = 6
    footer_pad: int = 6
    caption: int = 54
    title: int = 88
    quote: int = 60
    body: int = 34
    button: int = 36
    footer: int = 22

    def scaled(self, factor: float) -> "ScaleTokens":
        return ScaleTokens(**{k: max(1, round(v * factor)) for k, v in asdict(self).items()})


BASE_TOKENS = ScaleTokens()


@dataclass(frozen=True)
class RenderedDocument:
    """Complete HTML bound to a viewport size."""
    html: str
    width: int
    height: int
    has_media: bool = False


class TemplateRenderer:
    """Render sanitized content and an image asset into a card document."""

    def __init__(self, font_service: FontService | None = None):
        self.font_service = font_service or FontService()
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(
        self,
        style: CardStyle,
        content: SanitizedContent,
        asset: ImageAsset,
        width: int | None = None,
        height: int | None = None,
        font_scale: float | None = None,
        fit: str | None = None,
    ) -> RenderedDocument:
        """
        Compose the card document.

        Args:
            style: Resolved card style
            content: Sanitized text fragments
            asset: Image asset (may be empty)
            width: Requested width in pixels (clamped)
            height: Requested height in pixels (clamped)
            font_scale: Type and spacing multiplier (clamped)
            fit: ``cover`` or ``contain``; anything else means the style default

        Returns:
            RenderedDocument with the final pixel dimensions
        """
        config = STYLE_CONFIGS[style]
        width = clamp_dimension(width, config.width)
        height = clamp_dimension(height, config.height)
        scale = clamp_font_scale(font_scale)
        fit_mode = fit if fit in FIT_MODES else config.fit

        image_src = asset.src if config.media else ""

        families = self.font_service.families()
        font_family = ", ".join([f"'{f}'" for f in families] + [SYSTEM_FONT_STACK])

        html = self.env.get_template(CARD_TEMPLATE).render(
            style=style.value,
            width=width,
            height=height,
            t=BASE_TOKENS.scaled(scale),
            fit=fit_mode,
            align=config.align,
            show_media=config.media,
            image_src=image_src,
            block_names=config.blocks,
            footer=config.footer,
            footer_actions=config.footer_actions,
            content={k: Markup(v) for k, v in asdict(content).items()},
            font_css=Markup(self.font_service.font_face_css()),
            font_family=Markup(font_family),
        )

        logger.debug(f"Composed {style.value} document {width}x{height} scale={scale}")
        return RenderedDocument(
            html=html,
            width=width,
            height=height,
            has_media=bool(image_src),
        )
