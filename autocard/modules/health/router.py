"""Health module routes."""

from fastapi import APIRouter

from autocard import __version__

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok", "service": "AutoCard", "version": __version__}
