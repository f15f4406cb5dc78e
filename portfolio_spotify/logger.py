import logging
import os


DEFAULT_LEVEL = logging.INFO


def resolve_level(level: int | str | None = None) -> int:
    """Turn a level name or number into a logging level.

    With no argument the LOG_LEVEL environment variable is used. Names that
    logging does not know fall back to INFO instead of failing at import.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL") or DEFAULT_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else DEFAULT_LEVEL


def default_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Logger for one portfolio_spotify module, called as default_logger(__name__).

    The token exchanger, resolvers, API routes, OAuth callback and poller each
    log through one of these. Every logger writes to stderr with a single
    stream handler, so importing a module twice does not duplicate lines.
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
