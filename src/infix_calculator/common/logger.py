"""Package logger shared by the worker, the command-line loop and the entry point."""
import logging
import sys
from typing import Union

LOGGER_NAME: str = "infix_calculator"
LOG_FORMAT: str = "[%(asctime)s] [%(levelname)-8s] [%(processName)s:%(threadName)s] %(message)s"
DATE_FORMAT: str = "%H:%M:%S"

logger: logging.Logger = logging.getLogger(LOGGER_NAME)


def configure_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """
    Attach a stderr handler to the package logger and set its level.

    Calling it again only updates the level, so repeated calls never duplicate output.

    :param level: Logging level name or number

    :return: The configured package logger
    :rtype: logging.Logger
    """
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger
