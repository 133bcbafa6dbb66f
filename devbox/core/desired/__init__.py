"""
Estado deseado: modelos, validación y carga desde YAML.

La única E/S del core vive en el loader (lectura de provision.yaml).
"""

from devbox.core.desired.models import (
    DatabaseConfig,
    DesiredState,
    DumpsConfig,
    FileSpec,
    GroupMembership,
    NetworkConfig,
    ResourceKind,
    ResourceSpec,
    SecretKind,
    SecretSpec,
)
from devbox.core.desired.validator import validate_desired_state
from devbox.core.desired.loader import DesiredStateLoader

__all__ = [
    "DatabaseConfig",
    "DesiredState",
    "DumpsConfig",
    "FileSpec",
    "GroupMembership",
    "NetworkConfig",
    "ResourceKind",
    "ResourceSpec",
    "SecretKind",
    "SecretSpec",
    "validate_desired_state",
    "DesiredStateLoader",
]
