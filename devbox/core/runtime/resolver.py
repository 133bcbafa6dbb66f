"""
Resolución del archivo de estado deseado (provision.yaml).

Orden:
1. Ruta explícita (opción --config de la CLI).
2. Variable de entorno DEVBOX_CONFIG.
3. provision.yaml en el cwd o en alguno de sus padres.
4. /vagrant/provision/provision.yaml (carpeta compartida de la VM).

El core NO lee el archivo; solo resuelve la ruta.
"""

from pathlib import Path
from typing import Optional

from devbox.core import settings
from devbox.core.errors import ConfigError

DEFAULT_CONFIG_NAME = "provision.yaml"

# Carpeta compartida por Vagrant dentro de la VM
VAGRANT_CONFIG_PATH = Path("/vagrant/provision") / DEFAULT_CONFIG_NAME


def config_path(explicit: Optional[Path] = None, cwd: Optional[Path] = None) -> Path:
    """
    Devuelve la ruta del archivo de estado deseado.

    Args:
        explicit: Ruta pasada por la CLI (tiene prioridad absoluta)
        cwd: Directorio desde el que buscar (por defecto Path.cwd())

    Returns:
        Path existente al archivo de configuración

    Raises:
        ConfigError: si ninguna de las ubicaciones contiene el archivo
    """
    if explicit is not None:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Archivo de configuración no encontrado: {path}")
        return path.resolve()

    if settings.CONFIG_PATH:
        path = Path(settings.CONFIG_PATH).expanduser()
        if not path.is_file():
            raise ConfigError(f"DEVBOX_CONFIG apunta a un archivo inexistente: {path}")
        return path.resolve()

    start = (cwd or Path.cwd()).resolve()
    for d in [start] + list(start.parents):
        candidate = d / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            return candidate

    if VAGRANT_CONFIG_PATH.is_file():
        return VAGRANT_CONFIG_PATH

    raise ConfigError(
        f"No se encontró {DEFAULT_CONFIG_NAME} (usa --config o DEVBOX_CONFIG)"
    )
