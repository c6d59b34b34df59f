from __future__ import annotations

import logging

LOGGER_NAME = "payloadtools"


def get_logger(level: int = logging.INFO) -> logging.Logger:
    """
    Return the package logger, installing a stream handler on first use.

    Library modules log through ``logging.getLogger(__name__)`` children so
    everything funnels into this one handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[payloadtools] %(message)s"))
        logger.addHandler(h)
    logger.setLevel(level)
    return logger
