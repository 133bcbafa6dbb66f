"""Configuración de logging (rich)."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from devbox.core import settings

_handler = RichHandler(
    console=Console(stderr=True),
    show_path=False,
    markup=False,
    rich_tracebacks=True,
)
_handler.setLevel(settings.LOG_LEVEL)
_handler.setFormatter(logging.Formatter("%(message)s"))

LOGGER = logging.getLogger(settings.LOGGER_NAME)
LOGGER.setLevel(settings.LOG_LEVEL)
LOGGER.addHandler(_handler)
LOGGER.propagate = False
