"""Font service - locate bundled fonts and inline them as @font-face rules."""

import base64
from pathlib import Path

from autocard.config import get_settings
from autocard.shared.logging import get_logger

logger = get_logger(__name__)


FONT_MIME = {
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

# Filename suffix -> (font-weight, font-style)
STYLE_MAP = {
    "regular": ("400", "normal"),
    "medium": ("500", "normal"),
    "semibold": ("600", "normal"),
    "bold": ("700", "normal"),
    "extrabold": ("800", "normal"),
    "black": ("900", "normal"),
    "italic": ("400", "italic"),
    "bolditalic": ("700", "italic"),
}


class FontService:
    """Find font files under ``fonts_dir`` and embed them into card documents.

    Layout on disk is ``<fonts_dir>/<Family>/<Family>-<Style>.<ext>``, e.g.
    ``fonts/Inter/Inter-Bold.ttf``.
    """

    def __init__(self, fonts_dir: Path | None = None):
        if fonts_dir is None:
            fonts_dir = get_settings().fonts_dir
        self.fonts_dir = Path(fonts_dir) if fonts_dir else None

    def list_fonts(self) -> list[dict]:
        """List available font families and their styles."""
        fonts = []

        if self.fonts_dir is None or not self.fonts_dir.is_dir():
            return fonts

        for family_dir in sorted(self.fonts_dir.iterdir()):
            if not family_dir.is_dir():
                continue
            styles = sorted({self._style_of(f) for f in self._font_files(family_dir)})
            if styles:
                fonts.append({"family": family_dir.name, "styles": styles})

        return fonts

    def font_face_css(self) -> str:
        """
        Build @font-face rules for every bundled font, with the font data
        inlined so the rendering engine needs no network access for text.

        Returns:
            CSS text, empty when no fonts are configured
        """
        if self.fonts_dir is None or not self.fonts_dir.is_dir():
            return ""

        rules = []
        for family_dir in sorted(self.fonts_dir.iterdir()):
            if not family_dir.is_dir():
                continue
            for font_file in self._font_files(family_dir):
                weight, style = STYLE_MAP.get(self._style_of(font_file), ("400", "normal"))
                try:
                    payload = base64.b64encode(font_file.read_bytes()).decode("ascii")
                except OSError as e:
                    logger.warning(f"Skipping unreadable font {font_file}: {e}")
                    continue
                mime = FONT_MIME[font_file.suffix.lower()]
                rules.append(
                    "@font-face{"
                    f"font-family:'{family_dir.name}';"
                    f"font-weight:{weight};font-style:{style};"
                    f"src:url(data:{mime};base64,{payload});"
                    "}"
                )

        return "\n".join(rules)

    def families(self) -> list[str]:
        return [f["family"] for f in self.list_fonts()]

    @staticmethod
    def _font_files(family_dir: Path) -> list[Path]:
        return sorted(p for p in family_dir.iterdir() if p.suffix.lower() in FONT_MIME)

    @staticmethod
    def _style_of(font_file: Path) -> str:
        name = font_file.stem
        if "-" in name:
            return name.split("-")[-1].lower().replace("_", "")
        return "regular"
