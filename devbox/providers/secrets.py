"""
Módulo Secrets - Generar una vez, reutilizar siempre

Claves y certificados se generan solo si no existen: regenerarlos
invalidaría todo lo que depende del valor anterior (p. ej. un certificado
firmado con la clave). Si la generación falla no queda nada a medias en disco.
"""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from devbox.core.desired.models import SecretKind, SecretSpec
from devbox.core.errors import GenerationFailure
from devbox.core.logger import LOGGER
from devbox.providers.shell import Runner, run_command

Generator = Callable[[Path], None]


class SecretOutcome(str, Enum):
    REUSED = "reused"
    GENERATED = "generated"


def ensure(path: Path, generator: Generator) -> SecretOutcome:
    """
    Materializa el secreto si no existe

    El generador escribe en un temporal junto a `path`; solo un resultado
    no vacío se mueve a `path`. Un fallo o una interrupción nunca deja
    un archivo en `path`.

    Args:
        path: Ruta del artefacto
        generator: Función que escribe el artefacto en la ruta recibida

    Returns:
        REUSED si ya existía (sin más E/S que la comprobación), GENERATED si se creó

    Raises:
        GenerationFailure: el generador falló o no produjo el archivo
    """
    path = Path(path)
    if path.exists():
        return SecretOutcome.REUSED

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        generator(tmp)
        if not tmp.is_file() or tmp.stat().st_size == 0:
            raise GenerationFailure(f"El generador no produjo {path}")
        os.replace(tmp, path)
    except GenerationFailure:
        raise
    except Exception as e:
        raise GenerationFailure(f"No se pudo generar {path}: {e}") from e
    finally:
        tmp.unlink(missing_ok=True)
    LOGGER.info("Generado %s", path)
    return SecretOutcome.GENERATED


class OpenSSLGenerators:
    """Recetas openssl: clave RSA y certificado autofirmado"""

    def __init__(self, run: Runner = run_command, timeout: Optional[float] = 120):
        self.run = run
        self.timeout = timeout

    def _openssl(self, args) -> None:
        ok, _, stderr = self.run(["openssl"] + list(args), timeout=self.timeout)
        if not ok:
            raise GenerationFailure(f"openssl {args[0]} falló: {stderr.strip()}")

    def rsa_key(self, bits: int = 2048) -> Generator:
        def generate(path: Path) -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._openssl(["genrsa", "-out", str(path), str(bits)])
            path.chmod(0o600)
        return generate

    def self_signed_cert(self, key: Path, subject: str, days: int = 3650) -> Generator:
        """
        El certificado usa EXACTAMENTE la clave existente en `key`;
        si la clave no existe falla (nunca la genera como efecto colateral).
        """
        key = Path(key)

        def generate(path: Path) -> None:
            if not key.is_file():
                raise GenerationFailure(f"La clave {key} no existe; no se firma {path}")
            path.parent.mkdir(parents=True, exist_ok=True)
            self._openssl([
                "req", "-new", "-x509",
                "-key", str(key),
                "-out", str(path),
                "-days", str(days),
                "-subj", subject,
            ])
        return generate

    def for_spec(self, spec: SecretSpec) -> Generator:
        if spec.kind == SecretKind.RSA_KEY:
            return self.rsa_key(spec.bits)
        return self.self_signed_cert(spec.key, spec.subject, spec.days)


class SecretMaterializer:
    """Materializa los secretos declarados en el orden dado"""

    def __init__(self, generators: Optional[OpenSSLGenerators] = None):
        self.generators = generators or OpenSSLGenerators()

    def ensure(self, path: Path, generator: Generator) -> SecretOutcome:
        return ensure(path, generator)

    def ensure_spec(self, spec: SecretSpec) -> SecretOutcome:
        return ensure(spec.path, self.generators.for_spec(spec))
