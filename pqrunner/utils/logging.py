from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Streamed answers go to stdout; keep log chatter out of the way unless asked.
DEFAULT_LEVEL = "WARNING"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once. Explicit level wins over LOG_LEVEL."""
    name = (level or os.getenv("LOG_LEVEL", DEFAULT_LEVEL)).upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        resolved = logging.WARNING

    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
