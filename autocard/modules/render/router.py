"""Render module routes."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from autocard.shared.errors import AutoCardError
from autocard.shared.logging import get_logger

from .output import PNG_MIME
from .schemas import ErrorResponse, RenderRequest, RenderResponse
from .service import RenderService

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["render"])


def get_service() -> RenderService:
    """Dependency injection for service."""
    return RenderService()


@router.post(
    "/render",
    response_model=RenderResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def render_card(
    request: RenderRequest,
    service: RenderService = Depends(get_service),
) -> Response:
    """
    Render a social media card to PNG.

    Returns the PNG directly when ``return`` is ``binary``; otherwise a JSON
    body with either a stored ``url`` or an inline ``dataUrl``.
    """
    try:
        outcome = await service.render(request)
    except AutoCardError:
        raise
    except Exception as e:
        logger.exception("Card render failed")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Failed to render", detail=str(e)).model_dump(exclude_none=True),
        )

    artifact = outcome.artifact

    if artifact.mode == "binary":
        return Response(
            content=artifact.content,
            media_type=PNG_MIME,
            headers={
                "Content-Disposition": artifact.content_disposition,
                "Content-Length": str(len(artifact.content)),
                "Cache-Control": "no-store",
            },
        )

    body = RenderResponse(
        style=outcome.style.value,
        width=outcome.width,
        height=outcome.height,
        url=artifact.url,
        data_url=artifact.data_url,
        filename=artifact.filename,
        mode=artifact.mode,
    )
    return JSONResponse(content=body.model_dump(by_alias=True, exclude_none=True))
