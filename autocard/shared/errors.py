"""
Error hierarchy.

Every error that can reach the HTTP layer derives from ``AutoCardError`` and
carries its own status code. The app-level exception handler serializes it
as ``{"ok": false, "error": ..., "detail": ...}``.
"""

from typing import Any


class AutoCardError(Exception):
    """Base error with an HTTP status and a stable error code."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        code: str | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ok": False, "error": self.message, "code": self.code}
        if self.detail:
            data["detail"] = self.detail
        return data


class BadRequestError(AutoCardError):
    """Client sent something we cannot act on."""

    code = "BAD_REQUEST"
    http_status = 400


class UnknownStyleError(BadRequestError):
    """Explicit style identifier is not one of the known layouts."""

    code = "UNKNOWN_STYLE"

    def __init__(self, style: str, known: list[str]):
        super().__init__(
            f"Unknown style: {style}",
            detail=f"Expected one of: auto, {', '.join(known)}",
        )
        self.style = style


class RenderEngineError(AutoCardError):
    """Headless browser failed to launch, load or capture."""

    code = "RENDER_FAILED"
    http_status = 500

    def __init__(self, detail: str):
        super().__init__("Failed to render", detail=detail)


class ImageFetchError(Exception):
    """Remote image could not be fetched. Never leaves the images module."""


class StorageError(Exception):
    """Durable storage write failed. Never leaves the output packager."""
