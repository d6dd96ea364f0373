"""Render module schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


OutputMode = Literal["binary", "dataUrl"]


class RenderRequest(BaseModel):
    """Request to render a social media card.

    JSON field names are camelCase (``imageUrl``, ``ctaButtonText``, ...);
    snake_case names are accepted too.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    style: str | None = Field(
        default="auto",
        description="photo_caption, quote, title_only, notes_cover, cta, markdown_note or auto",
    )

    # Content
    image_url: str = ""
    caption: str = ""
    title: str = ""
    body: str = ""
    quote: str = ""
    cta_text: str = ""
    cta_button_text: str = ""
    cta_url: str = ""

    # Stamps
    handle: str = ""
    page_no: str = ""

    # Presentation
    width: int | None = Field(default=None, description="Pixels, clamped to [600, 2000]")
    height: int | None = Field(default=None, description="Pixels, clamped to [600, 2000]")
    font_scale: float | None = Field(default=1.0, description="Clamped to [0.6, 1.4]")
    fit: str | None = Field(default=None, description="cover or contain")

    # Output
    filename: str | None = None
    return_mode: OutputMode = Field(default="dataUrl", alias="return")
    binary: bool | None = Field(default=None, description="Shorthand for return=binary")
    download: bool = Field(default=False, description="Attachment instead of inline disposition")

    @property
    def output_mode(self) -> OutputMode:
        if self.binary is not None:
            return "binary" if self.binary else "dataUrl"
        return self.return_mode


class RenderResponse(BaseModel):
    """JSON body returned for non-binary renders."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool = True
    style: str
    width: int
    height: int
    url: str | None = None
    data_url: str | None = None
    filename: str | None = None
    mode: Literal["url", "dataUrl"] | None = None


class ErrorResponse(BaseModel):
    """Failure body shared by every error path."""

    ok: bool = False
    error: str
    detail: str | None = None
