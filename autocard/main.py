"""
AutoCard entrypoint - runs uvicorn server.
"""

import uvicorn

from autocard.app import build_app
from autocard.config import get_settings
from autocard.shared.logging import setup_logging


def main() -> None:
    """Serve the card renderer."""
    settings = get_settings()
    setup_logging(settings.log_level)
    app = build_app(settings)

    print(f"AutoCard listening on http://{settings.host}:{settings.port}")
    print(f"POST cards to http://{settings.host}:{settings.port}/api/render")
    if settings.storage_backend == "none":
        print("No storage backend configured, cards are returned as data URLs")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
