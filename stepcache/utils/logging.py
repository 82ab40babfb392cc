import logging

LOG_FORMAT = "%(levelname)s %(message)s"


def get_logger(name: str = "stepcache"):
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    return logging.getLogger(name)


def set_level(level) -> None:
    """Set the level of every stepcache logger, e.g. from a --log-level flag."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logging.getLogger("stepcache").setLevel(level)
