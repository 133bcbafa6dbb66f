"""
Modelos del estado deseado (agnósticos de CLI y filesystem).
Usa Pydantic para validación; se construye una vez por ejecución y no se modifica.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ResourceKind(str, Enum):
    """Protocolo de obtención de un recurso externo"""
    GIT = "git"
    ARCHIVE = "archive"


class SecretKind(str, Enum):
    """Receta de generación de un secreto"""
    RSA_KEY = "rsa-key"
    SELF_SIGNED_CERT = "self-signed-cert"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=False)


class NetworkConfig(_Frozen):
    probe_url: str = Field("http://google.com", description="URL de sondeo de salida")
    attempts: int = Field(3, ge=1)
    timeout: float = Field(5.0, gt=0, description="Timeout por intento (segundos)")
    delay: float = Field(0.0, ge=0, description="Espera entre intentos (segundos)")


class ResourceSpec(_Frozen):
    """Artefacto externo con upstream que evoluciona (repo git o archivo descargable)"""
    name: str
    kind: ResourceKind = ResourceKind.GIT
    source: str = Field(..., description="URL del repositorio o del archivo")
    path: Path
    remote: str = "origin"
    branch: Optional[str] = Field(None, description="Rama a seguir (git)")
    update_command: Optional[Tuple[str, ...]] = Field(
        None, description="Comando de auto-actualización (archive), p. ej. wp cli update"
    )
    mode: Optional[int] = Field(None, description="Permisos del archivo descargado (archive)")


class SecretSpec(_Frozen):
    """Artefacto derivado que no debe regenerarse una vez presente"""
    path: Path
    kind: SecretKind
    bits: int = Field(2048, ge=1024)
    key: Optional[Path] = Field(None, description="Clave privada a usar (certificado)")
    subject: Optional[str] = None
    days: int = Field(3650, ge=1)

    @model_validator(mode="after")
    def _certificate_needs_key(self):
        if self.kind == SecretKind.SELF_SIGNED_CERT:
            if self.key is None:
                raise ValueError("un certificado requiere 'key'")
            if not self.subject:
                raise ValueError("un certificado requiere 'subject'")
        return self


class FileSpec(_Frozen):
    """Archivo o directorio de configuración a copiar desde la carpeta compartida"""
    source: Path
    destination: Path
    delete: bool = Field(False, description="Directorios: eliminar en destino lo que no está en origen")


class GroupMembership(_Frozen):
    user: str
    group: str


class DatabaseConfig(_Frozen):
    host: str = "localhost"
    user: str = "root"
    password: Optional[str] = None
    defaults_file: Optional[Path] = None


class DumpsConfig(_Frozen):
    directory: Path
    extension: str = ".sql"
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @field_validator("extension")
    @classmethod
    def _dotted(cls, v: str) -> str:
        return v if v.startswith(".") else f".{v}"


class DesiredState(_Frozen):
    """Estado deseado completo del host (provision.yaml)"""
    version: int = Field(1, description="Versión del esquema")
    packages: Tuple[str, ...] = ()
    profile: Tuple[FileSpec, ...] = Field((), description="Dotfiles y bin del usuario")
    config_files: Tuple[FileSpec, ...] = Field((), description="Configuración de servidores")
    secrets: Tuple[SecretSpec, ...] = ()
    services: Tuple[str, ...] = ()
    groups: Tuple[GroupMembership, ...] = ()
    dumps: Optional[DumpsConfig] = None
    resources: Tuple[ResourceSpec, ...] = ()
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    transport_timeout: int = Field(600, ge=1, description="Timeout de clone/pull/descarga/import (segundos)")

    @field_validator("packages")
    @classmethod
    def _non_empty_names(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not name or not name.strip() for name in v):
            raise ValueError("los nombres de paquete no pueden estar vacíos")
        return tuple(name.strip() for name in v)

    def paths_in_use(self) -> List[Path]:
        """Rutas locales que alguna etapa escribe (recursos y secretos)."""
        return [r.path for r in self.resources] + [s.path for s in self.secrets]
