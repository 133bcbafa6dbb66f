"""
Loader del estado deseado
Carga provision.yaml y lo convierte a modelos Pydantic
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from devbox.core import settings
from devbox.core.desired.models import DesiredState
from devbox.core.desired.validator import validate_desired_state
from devbox.core.errors import ConfigError, ValidationError


class DesiredStateLoader:
    """Carga y valida el estado deseado"""

    def __init__(self, mysql_password: Optional[str] = None):
        """
        Args:
            mysql_password: Contraseña de MySQL que reemplaza a la del archivo
                            (por defecto DEVBOX_MYSQL_PASSWORD)
        """
        self.mysql_password = mysql_password if mysql_password is not None else settings.MYSQL_PASSWORD

    def read(self, path: Path) -> Dict[str, Any]:
        """Lee el YAML crudo; un archivo vacío equivale a {}."""
        path = Path(path)
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigError(f"Archivo de configuración no encontrado: {path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Error al parsear YAML ({path}): {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: la raíz del YAML debe ser un diccionario")
        return data

    def parse(self, data: Dict[str, Any], base_dir: Optional[Path] = None) -> DesiredState:
        """
        Construye y valida el DesiredState.

        Args:
            data: Diccionario leído del YAML
            base_dir: Directorio contra el que se resuelven rutas relativas de origen

        Raises:
            ValidationError: si el modelo o las reglas entre campos fallan
        """
        try:
            desired = DesiredState(**data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )

        if base_dir is not None:
            desired = self._resolve_sources(desired, Path(base_dir))

        if desired.dumps is not None and self.mysql_password:
            database = desired.dumps.database.model_copy(update={"password": self.mysql_password})
            desired = desired.model_copy(
                update={"dumps": desired.dumps.model_copy(update={"database": database})}
            )

        errors = validate_desired_state(desired)
        if errors:
            raise ValidationError(errors)
        return desired

    def load(self, path: Path) -> DesiredState:
        """Lee, resuelve rutas relativas al archivo y valida."""
        path = Path(path)
        return self.parse(self.read(path), base_dir=path.parent)

    @staticmethod
    def _resolve_sources(desired: DesiredState, base_dir: Path) -> DesiredState:
        """Los orígenes relativos (profile, config_files, dumps) se toman desde el YAML."""

        def resolve(p: Path) -> Path:
            return p if p.is_absolute() else (base_dir / p)

        update: Dict[str, Any] = {
            "profile": tuple(f.model_copy(update={"source": resolve(f.source)}) for f in desired.profile),
            "config_files": tuple(
                f.model_copy(update={"source": resolve(f.source)}) for f in desired.config_files
            ),
        }
        if desired.dumps is not None:
            update["dumps"] = desired.dumps.model_copy(update={"directory": resolve(desired.dumps.directory)})
        return desired.model_copy(update=update)
