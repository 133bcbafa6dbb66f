"""
Runtime: resolución de rutas de configuración y contratos de estado observado.
"""

from devbox.core.runtime.resolver import config_path, DEFAULT_CONFIG_NAME
from devbox.core.runtime.state import ObservedState, StateProbe

__all__ = ["config_path", "DEFAULT_CONFIG_NAME", "ObservedState", "StateProbe"]
