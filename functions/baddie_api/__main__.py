"""
Run the API under uvicorn: ``python -m baddie_api``.

Host and port come from ``HOST`` and ``PORT`` (default 3000).
"""

from __future__ import annotations

import logging

import uvicorn

from baddie_api.config import get_settings
from baddie_api.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Server running on port %d", settings.port)
    uvicorn.run(
        "baddie_api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
