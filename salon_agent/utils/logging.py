"""
Logging setup shared by all modules.
"""

import logging
from typing import Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stream handler on the ``salon`` logger tree.

    An explicit ``level`` is always applied, even after the first call.
    """
    global _configured
    if _configured and level is None:
        return

    if level is None:
        from ..config import get_settings
        level = get_settings().log_level

    root = logging.getLogger("salon")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``salon`` namespace, configuring on first use."""
    configure_logging()
    return logging.getLogger(name)
