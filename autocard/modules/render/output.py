"""
Output packager - turn captured PNG bytes into what the caller asked for.

``binary`` returns the bytes. Every other mode tries durable storage first
and falls back to an inline ``data:`` URL when storage is missing or fails.
The fallback is a normal result, not an error.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Literal

from autocard.shared.ids import short_token
from autocard.shared.logging import get_logger

from .images import to_data_url
from .storage import StorageBackend

logger = get_logger(__name__)


PNG_MIME = "image/png"
MAX_FILENAME_STEM = 100

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

ArtifactMode = Literal["binary", "url", "dataUrl"]


def generate_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"card-{now:%Y%m%d-%H%M%S}-{short_token()}.png"


def sanitize_filename(name: str | None) -> str:
    """Safe ``.png`` filename from user input, or a generated one."""
    raw = (name or "").strip().replace("\\", "/")
    stem = PurePath(raw).name if raw else ""
    if stem.lower().endswith(".png"):
        stem = stem[:-4]
    stem = _UNSAFE_CHARS.sub("-", stem).strip("-.")[:MAX_FILENAME_STEM].strip("-.")
    if not stem:
        return generate_filename()
    return f"{stem}.png"


@dataclass(frozen=True)
class OutputArtifact:
    """Exactly one of ``content``, ``url`` or ``data_url`` is set."""
    mode: ArtifactMode
    filename: str
    content: bytes | None = None
    url: str | None = None
    data_url: str | None = None
    disposition: str = "inline"

    def __post_init__(self):
        present = [v for v in (self.content, self.url, self.data_url) if v is not None]
        if len(present) != 1:
            raise ValueError("OutputArtifact needs exactly one representation")

    @property
    def content_disposition(self) -> str:
        return f'{self.disposition}; filename="{self.filename}"'


class OutputPackager:
    """Package PNG bytes as binary, stored URL, or inline data URL."""

    def __init__(self, storage: StorageBackend | None = None, prefix: str = ""):
        self.storage = storage
        self.prefix = prefix

    async def package(
        self,
        png: bytes,
        mode: str = "dataUrl",
        filename: str | None = None,
        download: bool = False,
    ) -> OutputArtifact:
        name = sanitize_filename(filename)

        if mode == "binary":
            return OutputArtifact(
                mode="binary",
                filename=name,
                content=png,
                disposition="attachment" if download else "inline",
            )

        if self.storage is not None:
            key = f"{self.prefix}{name}"
            try:
                url = await self.storage.put(key, png, PNG_MIME)
                logger.info(f"Stored card at {url}")
                return OutputArtifact(mode="url", filename=name, url=url)
            except Exception as e:
                logger.warning(f"Storage write failed, returning inline image: {e}")

        return OutputArtifact(mode="dataUrl", filename=name, data_url=to_data_url(png, PNG_MIME))
