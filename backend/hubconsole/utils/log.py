from __future__ import annotations

import logging

from ..config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # requests' connection pool is chatty at DEBUG with a 1 s poll
    logging.getLogger("urllib3").setLevel(logging.WARNING)
