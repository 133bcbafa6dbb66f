"""
Errores del aprovisionador.

El core solo define excepciones; las capas (CLI/pipeline) se encargan del formato de salida.
La falta de red NO es una excepción: es Connectivity.UNREACHABLE (salida degradada válida).
"""


class DevboxError(Exception):
    """Error base de devbox."""
    pass


class ConfigError(DevboxError):
    """Error de configuración (archivo faltante, YAML inválido)."""
    pass


class ValidationError(ConfigError):
    """El estado deseado no cumple las reglas de validación."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Estado deseado inválido:\n" + "\n".join(f"  - {e}" for e in self.errors))


class CommandError(DevboxError):
    """Un comando del sistema terminó con error."""
    pass


class ProbeFailure(DevboxError):
    """No se pudo determinar el estado actual del host."""
    pass


class InstallError(DevboxError):
    """Falló la instalación batch de paquetes."""
    pass


class SyncError(DevboxError):
    """Falló la descarga/clonado de un recurso externo."""
    pass


class SyncConflict(SyncError):
    """La actualización no se pudo aplicar limpiamente; la copia local queda intacta."""
    pass


class GenerationFailure(DevboxError):
    """Falló la generación de un secreto (clave, certificado)."""
    pass


class ImportFailure(DevboxError):
    """Falló la importación de un dump SQL."""
    pass
