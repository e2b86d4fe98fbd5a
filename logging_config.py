import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "info") -> None:
    """Configures the root logger from LOG_LEVEL"""
    logging.basicConfig(level=_LEVELS.get(level.lower(), logging.INFO), format=LOG_FORMAT, force=True)
    # requests are already logged by our own middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
