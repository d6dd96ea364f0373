"""
Content sanitizer.

Untrusted text reaches the card through one of two paths:

- Markdown mode: a restricted CommonMark subset rendered by markdown-it-py
  (no linkify, soft breaks kept) and then cleaned by bleach against a small
  allow-list of text tags. Raw HTML is passed through to bleach so that
  anything outside the allow-list is stripped rather than shown as text.
- Plain-text mode: entity escaping only, for stamps and short labels.

Neither path raises. On an unexpected failure the fragment is empty.
"""

from dataclasses import dataclass

import bleach
from markdown_it import MarkdownIt
from markupsafe import escape

from autocard.config import Settings, get_settings
from autocard.shared.logging import get_logger

from .schemas import RenderRequest

logger = get_logger(__name__)


ALLOWED_TAGS = frozenset({
    "p", "br",
    "strong", "b", "em", "i", "u", "s", "del",
    "ul", "ol", "li",
    "blockquote",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "a",
})
ALLOWED_ATTRIBUTES = {"a": ["href", "title"]}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "tel"})


def _build_markdown_parser() -> MarkdownIt:
    # Raw HTML is kept in the markdown output; clean_html strips it.
    md = MarkdownIt("commonmark", {"html": True, "linkify": False, "breaks": True})
    md.enable("strikethrough")
    md.disable("image")
    return md


_MD = _build_markdown_parser()


def clean_html(fragment: str) -> str:
    """Strip everything outside the allow-list from an HTML fragment."""
    return bleach.clean(
        fragment,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )


def sanitize_markdown(text: str | None) -> str:
    """Render restricted Markdown to safe HTML."""
    if not text or not str(text).strip():
        return ""
    try:
        return clean_html(_MD.render(str(text))).strip()
    except Exception as e:
        logger.warning(f"Markdown sanitization failed, dropping fragment: {e}")
        return ""


def sanitize_text(text: str | None) -> str:
    """Escape plain text for embedding. No Markdown interpretation."""
    if text is None:
        return ""
    try:
        return str(escape(str(text).strip()))
    except Exception as e:
        logger.warning(f"Text escaping failed, dropping fragment: {e}")
        return ""


@dataclass(frozen=True)
class SanitizedContent:
    """Safe fragments for every text slot. Always strings, never None."""
    caption: str = ""
    title: str = ""
    body: str = ""
    quote: str = ""
    cta_text: str = ""
    cta_button_text: str = ""
    cta_url: str = ""
    handle: str = ""
    page_no: str = ""


def sanitize_request(request: RenderRequest, settings: Settings | None = None) -> SanitizedContent:
    """Sanitize all text fields of a render request.

    Empty stamps fall back to ``default_handle`` and ``default_page_no``.
    """
    settings = settings or get_settings()
    return SanitizedContent(
        caption=sanitize_markdown(request.caption),
        title=sanitize_text(request.title),
        body=sanitize_markdown(request.body),
        quote=sanitize_markdown(request.quote or request.body or request.caption),
        cta_text=sanitize_markdown(request.cta_text),
        cta_button_text=sanitize_text(request.cta_button_text),
        cta_url=sanitize_text(request.cta_url),
        handle=sanitize_text(request.handle.strip() or settings.default_handle),
        page_no=sanitize_text(request.page_no.strip() or settings.default_page_no),
    )
