"""
Módulo Dumps - Importación de dumps SQL sin pisar datos existentes

Por cada <nombre>.sql del directorio (orden lexicográfico):
- la base <nombre> no existe      → FAILED ("database must be pre-created")
- la base existe y está vacía     → se importa → IMPORTED
- la base existe y tiene tablas   → SKIPPED (protege datos cargados a mano)

Un fallo en un archivo no detiene al resto. Una importación fallida
se deshace (se eliminan las tablas creadas) para que la base quede vacía
y la siguiente ejecución vuelva a intentarlo.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

from devbox.core.errors import DevboxError, ProbeFailure
from devbox.core.logger import LOGGER
from devbox.core.reconcile import Action, ActionKind, database_name, decide_import


class ImportOutcome(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DumpResult:
    db_name: str
    outcome: ImportOutcome
    reason: str = ""
    dump_file: Optional[Path] = None

    def to_action(self) -> Action:
        if self.outcome == ImportOutcome.IMPORTED:
            return Action(ActionKind.IMPORT, self.db_name, self.reason)
        if self.outcome == ImportOutcome.SKIPPED:
            return Action.skip(self.db_name, self.reason)
        return Action.fail(self.db_name, self.reason)


class TableCountProbe(Protocol):
    def table_count(self, database: str) -> Optional[int]:
        ...


class DumpLoader(Protocol):
    """Quien ejecuta el dump contra la base (MySQLClient)"""

    def load_dump(self, database: str, dump_file: Path) -> None:
        ...

    def purge(self, database: str) -> int:
        ...


def list_dumps(dump_dir: Path, extension: str = ".sql") -> List[Path]:
    """Archivos de dump del directorio (plano), en orden lexicográfico."""
    dump_dir = Path(dump_dir)
    if not dump_dir.is_dir():
        return []
    return sorted(
        (p for p in dump_dir.iterdir() if p.is_file() and p.name.endswith(extension)),
        key=lambda p: p.name,
    )


class DumpImporter:
    """Reconcilia un directorio de dumps contra las bases existentes"""

    def __init__(self, loader: DumpLoader, extension: str = ".sql", dry_run: bool = False):
        self.loader = loader
        self.extension = extension
        self.dry_run = dry_run

    def import_all(self, dump_dir: Path, probe: TableCountProbe) -> List[DumpResult]:
        dumps = list_dumps(dump_dir, self.extension)
        if not dumps:
            LOGGER.info("No hay dumps en %s", dump_dir)
        return [self.import_one(dump_file, probe) for dump_file in dumps]

    def import_one(self, dump_file: Path, probe: TableCountProbe) -> DumpResult:
        db = database_name(dump_file, self.extension)
        try:
            count = probe.table_count(db)
        except ProbeFailure as e:
            # Sin saber si hay datos, importar no es seguro
            return DumpResult(db, ImportOutcome.FAILED, str(e), dump_file)

        action = decide_import(db, count)
        if action.kind == ActionKind.SKIP:
            LOGGER.info("Base %s omitida: %s", db, action.reason)
            return DumpResult(db, ImportOutcome.SKIPPED, action.reason, dump_file)
        if action.is_failure:
            LOGGER.warning("Base %s: %s", db, action.reason)
            return DumpResult(db, ImportOutcome.FAILED, action.reason, dump_file)

        if self.dry_run:
            return DumpResult(db, ImportOutcome.IMPORTED, f"se importaría {dump_file.name}", dump_file)

        LOGGER.info("Importando %s en %s", dump_file.name, db)
        try:
            self.loader.load_dump(db, dump_file)
        except DevboxError as e:
            self._rollback(db)
            return DumpResult(db, ImportOutcome.FAILED, str(e), dump_file)
        except BaseException:
            # Interrumpida a medias: la base debe quedar vacía para reintentar
            self._rollback(db)
            raise
        return DumpResult(db, ImportOutcome.IMPORTED, f"importado desde {dump_file.name}", dump_file)

    def _rollback(self, db: str) -> None:
        try:
            self.loader.purge(db)
        except DevboxError as e:
            LOGGER.error("No se pudo vaciar %s tras una importación fallida: %s", db, e)
