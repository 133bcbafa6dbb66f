"""
Validación del estado deseado (lógica pura).

Sin I/O; solo reglas entre campos que Pydantic no expresa por modelo.
"""

from collections import Counter
from typing import List

from devbox.core.desired.models import DesiredState, SecretKind


def validate_unique_paths(desired: DesiredState) -> List[str]:
    """Dos recursos/secretos no pueden escribir la misma ruta local."""
    counts = Counter(desired.paths_in_use())
    return [f"Ruta declarada más de una vez: {path}" for path, n in counts.items() if n > 1]


def validate_unique_resource_names(desired: DesiredState) -> List[str]:
    counts = Counter(r.name for r in desired.resources)
    return [f"Recurso duplicado: {name}" for name, n in counts.items() if n > 1]


def validate_secret_order(desired: DesiredState) -> List[str]:
    """
    Un certificado consume la clave ya materializada: si la clave se declara
    como secreto, debe ir ANTES que el certificado.
    """
    errors: List[str] = []
    declared = [s.path for s in desired.secrets]
    for index, secret in enumerate(desired.secrets):
        if secret.kind != SecretKind.SELF_SIGNED_CERT:
            continue
        if secret.key in declared and declared.index(secret.key) > index:
            errors.append(
                f"El certificado {secret.path} se declara antes que su clave {secret.key}"
            )
        if secret.key == secret.path:
            errors.append(f"El certificado {secret.path} no puede ser su propia clave")
    return errors


def validate_desired_state(desired: DesiredState) -> List[str]:
    """
    Valida el estado deseado.
    Devuelve lista de mensajes de error; si vacía, es válido.
    """
    errors: List[str] = []
    errors.extend(validate_unique_paths(desired))
    errors.extend(validate_unique_resource_names(desired))
    errors.extend(validate_secret_order(desired))
    return errors
