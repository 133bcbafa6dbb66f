"""
Módulo Sync - Obtención condicional de recursos externos

"Instalar una vez y después seguir upstream":
- Si el recurso no está presente → descarga completa (CLONED)
- Si está presente → actualización incremental (UPDATED, con o sin cambios)

La actualización nunca pisa cambios locales: un árbol sucio o un rebase
con conflictos se aborta y se reporta como SyncConflict.
"""

import hashlib
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Sequence

import requests

from devbox.core.desired.models import ResourceKind, ResourceSpec
from devbox.core.errors import SyncConflict, SyncError
from devbox.core.logger import LOGGER
from devbox.providers.shell import Runner, run_command


class SyncOutcome(str, Enum):
    CLONED = "cloned"
    UPDATED = "updated"


@dataclass(frozen=True)
class SyncResult:
    outcome: SyncOutcome
    path: Path
    changed: bool = True


class Fetcher(Protocol):
    """Capacidad opaca de descarga/actualización según el protocolo"""

    def is_present(self, path: Path) -> bool:
        ...

    def fetch(self, source: str, path: Path) -> None:
        ...

    def update(self, source: str, path: Path) -> bool:
        """Actualiza la copia local; devuelve True si hubo cambios."""
        ...


class GitFetcher:
    """clone si no existe / pull --rebase si existe"""

    def __init__(
        self,
        remote: str = "origin",
        branch: Optional[str] = None,
        timeout: Optional[float] = 600,
        run: Runner = run_command,
    ):
        self.remote = remote
        self.branch = branch
        self.timeout = timeout
        self.run = run

    def is_present(self, path: Path) -> bool:
        return (Path(path) / ".git").exists()

    def _git(self, path: Path, *args: str):
        return self.run(["git", "-C", str(path)] + list(args), timeout=self.timeout)

    def _head(self, path: Path) -> str:
        ok, stdout, stderr = self._git(path, "rev-parse", "HEAD")
        if not ok:
            raise SyncError(f"No se pudo leer HEAD de {path}: {stderr.strip()}")
        return stdout.strip()

    def fetch(self, source: str, path: Path) -> None:
        path = Path(path)
        existed = path.exists()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SyncError(f"No se pudo crear {path.parent}: {e}")
        cmd = ["git", "clone"]
        if self.branch:
            cmd += ["--branch", self.branch]
        cmd += [source, str(path)]
        ok, _, stderr = self.run(cmd, timeout=self.timeout)
        if not ok:
            # Un clon a medias haría creer que el recurso ya está presente
            if not existed and path.exists():
                shutil.rmtree(path, ignore_errors=True)
            raise SyncError(f"git clone {source} falló: {stderr.strip()}")

    def update(self, source: str, path: Path) -> bool:
        path = Path(path)
        ok, stdout, stderr = self._git(path, "status", "--porcelain", "--untracked-files=no")
        if not ok:
            raise SyncError(f"git status en {path} falló: {stderr.strip()}")
        if stdout.strip():
            raise SyncConflict(f"{path} tiene cambios locales sin commit; no se actualiza")

        before = self._head(path)
        args = ["pull", "--rebase", self.remote]
        if self.branch:
            args.append(self.branch)
        ok, _, stderr = self._git(path, *args)
        if not ok:
            # Dejar la copia local como estaba
            self._git(path, "rebase", "--abort")
            raise SyncConflict(f"git pull --rebase en {path} falló: {stderr.strip()}")
        return self._head(path) != before


def _digest(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


class ArchiveFetcher:
    """
    Descarga de un archivo único (wp-cli.phar, composer...).

    fetch: descarga a un temporal en el mismo directorio y os.replace (atómico).
    update: ejecuta el comando de auto-actualización; sin comando no hay update.
    """

    def __init__(
        self,
        update_command: Optional[Sequence[str]] = None,
        mode: Optional[int] = None,
        timeout: Optional[float] = 600,
        run: Runner = run_command,
    ):
        self.update_command = list(update_command) if update_command else None
        self.mode = mode if mode is not None else 0o755
        self.timeout = timeout
        self.run = run

    def is_present(self, path: Path) -> bool:
        return Path(path).is_file()

    def fetch(self, source: str, path: Path) -> None:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        except OSError as e:
            raise SyncError(f"No se pudo preparar {path}: {e}")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                with requests.get(source, stream=True, timeout=self.timeout) as response:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=65536):
                        out.write(chunk)
            os.chmod(tmp, self.mode)
            os.replace(tmp, path)
        except (requests.exceptions.RequestException, OSError) as e:
            tmp.unlink(missing_ok=True)
            raise SyncError(f"Descarga de {source} falló: {e}")

    def update(self, source: str, path: Path) -> bool:
        if not self.update_command:
            return False
        try:
            before = _digest(path)
            ok, _, stderr = self.run(self.update_command, timeout=self.timeout)
            if not ok:
                raise SyncError(f"{' '.join(self.update_command)} falló: {stderr.strip()}")
            return _digest(path) != before
        except OSError as e:
            raise SyncError(f"No se pudo leer {path} tras la actualización: {e}")


def sync(
    source_ref: str,
    local_path: Path,
    present: Callable[[Path], bool],
    fetcher: Fetcher,
) -> SyncResult:
    """
    Clona si no está presente; actualiza si lo está.

    Raises:
        SyncError / SyncConflict: la copia local queda como estaba
    """
    local_path = Path(local_path)
    if not present(local_path):
        LOGGER.info("Descargando %s → %s", source_ref, local_path)
        fetcher.fetch(source_ref, local_path)
        return SyncResult(SyncOutcome.CLONED, local_path, changed=True)

    LOGGER.info("Actualizando %s", local_path)
    changed = fetcher.update(source_ref, local_path)
    return SyncResult(SyncOutcome.UPDATED, local_path, changed=changed)


class ResourceSync:
    """Sincroniza recursos declarados eligiendo el fetcher por tipo"""

    def __init__(
        self,
        timeout: Optional[float] = 600,
        run: Runner = run_command,
        fetchers: Optional[Dict[str, Fetcher]] = None,
    ):
        self.timeout = timeout
        self.run = run
        # Fetchers fijos por nombre de recurso (tests / overrides)
        self.fetchers = fetchers or {}

    def fetcher_for(self, spec: ResourceSpec) -> Fetcher:
        if spec.name in self.fetchers:
            return self.fetchers[spec.name]
        if spec.kind == ResourceKind.GIT:
            return GitFetcher(remote=spec.remote, branch=spec.branch, timeout=self.timeout, run=self.run)
        return ArchiveFetcher(
            update_command=spec.update_command, mode=spec.mode, timeout=self.timeout, run=self.run
        )

    def is_present(self, spec: ResourceSpec) -> bool:
        return self.fetcher_for(spec).is_present(spec.path)

    def sync_resource(self, spec: ResourceSpec) -> SyncResult:
        fetcher = self.fetcher_for(spec)
        return sync(spec.source, spec.path, fetcher.is_present, fetcher)
