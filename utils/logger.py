"""
Logging setup
Every module asks for its logger through get_logger(__name__).
"""
import logging
import sys

from config import settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger("ahrian")
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under the ahrian root logger"""
    _configure_root()
    return logging.getLogger(f"ahrian.{name}")
