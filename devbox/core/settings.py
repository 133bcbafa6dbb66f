"""
Valores de configuración tomados de variables de entorno.

Se carga primero el .env del proyecto (o del cwd) para que DEVBOX_* aplique
antes de leer cualquier valor.
"""

import os
from pathlib import Path
from typing import Final, Optional

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _load_dotenv() -> None:
    for env_file in (_PROJECT_ROOT / ".env", Path.cwd() / ".env"):
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_dotenv()


def _optional(key: str) -> Optional[str]:
    value = os.getenv(key, "").strip()
    return value or None


CONFIG_PATH: Final[Optional[str]] = _optional("DEVBOX_CONFIG")
LOG_LEVEL: Final[str] = os.getenv("DEVBOX_LOG_LEVEL", default="INFO").upper()
LOGGER_NAME: Final[str] = os.getenv("DEVBOX_LOGGER_NAME", default="devbox")
MYSQL_PASSWORD: Final[Optional[str]] = _optional("DEVBOX_MYSQL_PASSWORD")
