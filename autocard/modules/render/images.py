"""
Image acquisition.

Share links from cloud drives are rewritten to direct-content URLs, then the
image is fetched server-side and inlined as a ``data:`` URL so the browser
never has to reach the network for it. A failed fetch is not an error for
the request: the asset keeps the normalized URL and the template points the
browser at it directly.
"""

import base64
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import httpx

from autocard.config import Settings, get_settings
from autocard.shared.errors import ImageFetchError
from autocard.shared.logging import get_logger

logger = get_logger(__name__)


DROPBOX_HOSTS = {"dropbox.com", "www.dropbox.com"}
DROPBOX_DIRECT_HOST = "dl.dropboxusercontent.com"

DRIVE_HOSTS = {"drive.google.com"}
DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"

_DRIVE_FILE_PATH = re.compile(r"^/file/d/([A-Za-z0-9_-]+)")

_EXTENSION_MIME = {
    ".png": "image/png",
    ".webp": "image/webp",
}
DEFAULT_MIME = "image/jpeg"


# =============================================================================
# URL NORMALIZATION
# =============================================================================

def _normalize_dropbox(parsed) -> str:
    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
             if k not in ("dl", "raw")]
    query.append(("raw", "1"))
    return urlunparse(parsed._replace(
        scheme="https",
        netloc=DROPBOX_DIRECT_HOST,
        query=urlencode(query),
    ))


def _drive_file_id(parsed) -> str | None:
    match = _DRIVE_FILE_PATH.match(parsed.path)
    if match:
        return match.group(1)
    if parsed.path in ("/open", "/uc"):
        return dict(parse_qsl(parsed.query)).get("id")
    return None


def normalize_share_url(url: str | None) -> str:
    """Rewrite known share-link shapes to direct-content URLs.

    - Dropbox preview links go to the raw content host with ``raw=1`` and
      without the ``dl`` preview flag.
    - Google Drive file links become direct-download links for the file id.

    Anything else is returned unchanged (trimmed).
    """
    url = (url or "").strip()
    if not url:
        return ""

    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    host = (parsed.hostname or "").lower()

    if host in DROPBOX_HOSTS:
        return _normalize_dropbox(parsed)

    if host in DRIVE_HOSTS:
        file_id = _drive_file_id(parsed)
        if file_id:
            return DRIVE_DOWNLOAD_URL.format(file_id=file_id)

    return url


def guess_mime(url: str) -> str:
    """MIME type from the URL path extension; JPEG when unknown."""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    return _EXTENSION_MIME.get(suffix, DEFAULT_MIME)


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


# =============================================================================
# ASSET
# =============================================================================

@dataclass(frozen=True)
class ImageAsset:
    """A card image and where the browser should load it from."""
    original_url: str = ""
    normalized_url: str = ""
    data_url: str | None = None
    mime_type: str | None = None
    ok: bool = False
    error: str | None = None

    @property
    def src(self) -> str:
        """The single source handed to the template."""
        if self.data_url:
            return self.data_url
        try:
            scheme = urlparse(self.normalized_url).scheme.lower()
        except ValueError:
            return ""
        if scheme in ("http", "https"):
            return self.normalized_url
        return ""

    @property
    def inlined(self) -> bool:
        return self.data_url is not None


# =============================================================================
# FETCHER
# =============================================================================

class ImageFetcher:
    """Fetch remote images and inline them.

    A custom ``transport`` can be injected (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.settings.image_user_agent,
            "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    async def fetch(self, url: str) -> tuple[bytes, str]:
        """Download ``url`` and return ``(bytes, mime_type)``.

        Raises:
            ImageFetchError: malformed URL, unsupported scheme, transport
                error, non-2xx status, or a body over the size limit
        """
        try:
            scheme = urlparse(url).scheme.lower()
        except ValueError as e:
            raise ImageFetchError(f"Malformed URL: {e}") from e
        if scheme not in ("http", "https"):
            raise ImageFetchError(f"Unsupported URL scheme: {scheme or '(none)'}")

        max_bytes = self.settings.image_max_bytes

        async with httpx.AsyncClient(
            headers=self._headers(),
            follow_redirects=True,
            timeout=self.settings.image_fetch_timeout,
            transport=self.transport,
        ) as client:
            try:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise ImageFetchError(f"HTTP {response.status_code} for {url}")

                    chunks = []
                    size = 0
                    async for chunk in response.aiter_bytes():
                        size += len(chunk)
                        if size > max_bytes:
                            raise ImageFetchError(f"Image larger than {max_bytes} bytes")
                        chunks.append(chunk)

                    content_type = response.headers.get("content-type", "")
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise ImageFetchError(f"{type(e).__name__}: {e}") from e

        mime_type = content_type.split(";", 1)[0].strip().lower()
        if not mime_type or mime_type == "application/octet-stream":
            mime_type = guess_mime(url)

        return b"".join(chunks), mime_type

    async def acquire(self, url: str | None) -> ImageAsset:
        """Normalize, fetch and inline an image. Never raises."""
        original = (url or "").strip()
        if not original:
            return ImageAsset()

        normalized = normalize_share_url(original)
        if normalized != original:
            logger.debug(f"Normalized share link {original} -> {normalized}")

        try:
            data, mime_type = await self.fetch(normalized)
        except ImageFetchError as e:
            logger.warning(f"Image fetch failed, using direct URL: {e}")
            return ImageAsset(
                original_url=original,
                normalized_url=normalized,
                error=str(e),
            )

        logger.info(f"Inlined image {normalized} ({len(data)} bytes, {mime_type})")
        return ImageAsset(
            original_url=original,
            normalized_url=normalized,
            data_url=to_data_url(data, mime_type),
            mime_type=mime_type,
            ok=True,
        )
