from __future__ import annotations

import logging
from typing import Optional

from .config import LOG_LEVEL

_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_configured = False


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Install a single stream handler on the package logger.

    Library modules only call ``logging.getLogger(__name__)``; entry points
    (the Gradio app, scripts) call this once.
    """
    global _configured
    logger = logging.getLogger("storybloom")
    logger.setLevel((level or LOG_LEVEL).upper())
    if _configured:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True
    return logger
