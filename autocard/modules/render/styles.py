"""
Card styles: the closed set of layouts, their configuration table, and the
rules that pick one when the caller asks for ``auto``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Literal

from autocard.shared.errors import UnknownStyleError


class CardStyle(str, Enum):
    PHOTO_CAPTION = "photo_caption"
    QUOTE = "quote"
    TITLE_ONLY = "title_only"
    NOTES_COVER = "notes_cover"
    CTA = "cta"
    MARKDOWN_NOTE = "markdown_note"


AUTO = "auto"

FitMode = Literal["cover", "contain"]
FooterKind = Literal["stamp", "actions"]


@dataclass(frozen=True)
class StyleConfig:
    """Layout contract for one style.

    ``blocks`` lists the primary-text blocks in display order. Each name
    is a block macro in ``card.html``.
    """
    width: int
    height: int
    fit: FitMode = "cover"
    media: bool = False
    blocks: tuple[str, ...] = ()
    footer: FooterKind = "stamp"
    footer_actions: tuple[str, str] = ("Save", "Share")
    align: Literal["left", "center"] = "center"


STYLE_CONFIGS: dict[CardStyle, StyleConfig] = {
    CardStyle.PHOTO_CAPTION: StyleConfig(
        width=1080, height=1350, media=True, blocks=("caption",),
    ),
    CardStyle.QUOTE: StyleConfig(
        width=1080, height=1080, blocks=("quote",), footer="actions",
    ),
    CardStyle.TITLE_ONLY: StyleConfig(
        width=1080, height=1080, blocks=("title",),
    ),
    CardStyle.NOTES_COVER: StyleConfig(
        width=1080, height=1350, media=True, blocks=("title", "caption"), align="left",
    ),
    CardStyle.CTA: StyleConfig(
        width=1080, height=1080, blocks=("title", "cta_text", "cta_button"), footer="actions",
    ),
    CardStyle.MARKDOWN_NOTE: StyleConfig(
        width=1080, height=1350, blocks=("title", "body"), footer="actions", align="left",
    ),
}


# =============================================================================
# AUTO RESOLUTION
# =============================================================================

@dataclass(frozen=True)
class StyleSignals:
    """The request fields the auto rules look at."""
    image_url: str = ""
    cta_button_text: str = ""
    text: str = ""


@dataclass(frozen=True)
class StyleRule:
    name: str
    matches: Callable[[StyleSignals], bool]
    style: CardStyle


_BLOCKQUOTE_RE = re.compile(r"^\s{0,3}>", re.MULTILINE)


def word_count(text: str) -> int:
    return len(text.split())


def build_rules(min_image_url_length: int = 8, quote_max_words: int = 40) -> list[StyleRule]:
    """Ordered auto-resolution rules. First match wins."""
    return [
        StyleRule(
            "cta-button",
            lambda s: bool(s.cta_button_text.strip()),
            CardStyle.CTA,
        ),
        StyleRule(
            "image",
            lambda s: len(s.image_url.strip()) >= min_image_url_length
            and not s.cta_button_text.strip(),
            CardStyle.PHOTO_CAPTION,
        ),
        StyleRule(
            "short-or-quoted-text",
            lambda s: bool(_BLOCKQUOTE_RE.search(s.text)) or word_count(s.text) < quote_max_words,
            CardStyle.QUOTE,
        ),
        StyleRule("fallback", lambda s: True, CardStyle.QUOTE),
    ]


DEFAULT_RULES = build_rules()


def resolve_style(
    style: str | None,
    signals: StyleSignals,
    rules: list[StyleRule] | None = None,
) -> CardStyle:
    """Resolve an explicit identifier or run the auto rules.

    Raises:
        UnknownStyleError: explicit identifier is not a known style
    """
    key = (style or "").strip().lower()
    if key and key != AUTO:
        try:
            return CardStyle(key)
        except ValueError:
            raise UnknownStyleError(style or "", [s.value for s in CardStyle]) from None

    for rule in rules or DEFAULT_RULES:
        if rule.matches(signals):
            return rule.style
    return CardStyle.QUOTE
