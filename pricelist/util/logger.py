"""
Logging helpers.

- get_logger(name): package logger; first call installs one stream handler.
- configure_logging(level): set the package level (UI/CLI call this from settings).

Library modules only ever call get_logger(); they never touch handlers.
"""

import logging
from typing import Optional, Union

_ROOT = "pricelist"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    if not name or name == _ROOT:
        return root
    return root.getChild(name.split(".")[-1])


def configure_logging(level: Union[int, str] = "INFO") -> logging.Logger:
    logger = get_logger()
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    return logger
