"""Shared logger for the evaluator, the session and the batch runner."""
import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = "expression_evaluator") -> logging.Logger:
    """
    Return the package logger, attaching a stream handler on first use.

    The level is read from the ``EXPRESSION_EVALUATOR_LOG_LEVEL`` environment variable.

    :param str name: Logger name
    :return: Configured logger
    :rtype: logging.Logger
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.setLevel(os.environ.get("EXPRESSION_EVALUATOR_LOG_LEVEL", "WARNING").upper())
    return log


logger = get_logger()
