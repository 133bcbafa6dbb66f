"""
Copia de archivos de configuración desde la carpeta compartida

Solo se copia lo que difiere del destino (comparación de contenido), de modo
que una segunda ejecución no toca nada. La escritura es atómica: temporal en el
mismo directorio + os.replace.
"""

import filecmp
import os
import shutil
import tempfile
from pathlib import Path
from typing import List

from devbox.core.desired.models import FileSpec
from devbox.core.reconcile import Action, ActionKind


def _atomic_copy(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.")
    os.close(fd)
    try:
        shutil.copy2(source, tmp_name)
        os.replace(tmp_name, destination)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _same(source: Path, destination: Path) -> bool:
    return destination.is_file() and filecmp.cmp(source, destination, shallow=False)


class FileSync:
    """Copia-si-difiere de archivos y espejo de directorios"""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def sync(self, spec: FileSpec) -> List[Action]:
        source, destination = Path(spec.source), Path(spec.destination)
        if not source.exists():
            return [Action.fail(str(destination), f"el origen {source} no existe")]
        try:
            if source.is_dir():
                return self._sync_dir(source, destination, spec.delete)
            return [self._sync_file(source, destination)]
        except OSError as e:
            return [Action.fail(str(destination), f"error copiando desde {source}: {e}")]

    def _sync_file(self, source: Path, destination: Path) -> Action:
        if _same(source, destination):
            return Action.skip(str(destination), "sin cambios")
        if not self.dry_run:
            _atomic_copy(source, destination)
        return Action(ActionKind.COPY, str(destination), f"copiado desde {source}")

    def _sync_dir(self, source: Path, destination: Path, delete: bool) -> List[Action]:
        actions: List[Action] = []
        wanted = set()
        for src in sorted(p for p in source.rglob("*") if p.is_file()):
            rel = src.relative_to(source)
            wanted.add(rel)
            action = self._sync_file(src, destination / rel)
            if not action.is_skip:
                actions.append(action)

        if delete and destination.is_dir():
            for dst in sorted(p for p in destination.rglob("*") if p.is_file()):
                if dst.relative_to(destination) in wanted:
                    continue
                if not self.dry_run:
                    dst.unlink()
                actions.append(Action(ActionKind.COPY, str(dst), f"eliminado (no existe en {source})"))

        if not actions:
            actions.append(Action.skip(str(destination), "sin cambios"))
        return actions
