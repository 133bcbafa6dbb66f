"""
Core: lógica de reconciliación pura.

ENFORCEMENT (arquitectura limpia):
- Este paquete NO debe importar devbox.cli ni devbox.providers.
- No ejecuta comandos del sistema; solo decide qué ejecutar.
  La única E/S permitida es la lectura de provision.yaml (desired.loader).
- Los providers, el pipeline y la CLI importan desde core; nunca al revés.
"""

from devbox.core.errors import DevboxError, ConfigError, ValidationError

__all__ = ["DevboxError", "ConfigError", "ValidationError"]
