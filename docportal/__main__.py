"""Command-line entrypoint for running the DocPortal backend."""

from __future__ import annotations

import uvicorn

from .config import get_settings
from .utils.logging import configure_logging


def main() -> None:
    """Launch the FastAPI application using configured host/port/log level."""

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "docportal.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
