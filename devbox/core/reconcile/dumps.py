"""
Decisión de importación de dumps SQL.

La seguridad de los datos domina a la frescura: una base con tablas
nunca se importa, sin importar el contenido ni la fecha del dump.
"""

from pathlib import Path
from typing import Optional

from devbox.core.reconcile.models import Action, ActionKind

DATABASE_NOT_PRECREATED = "database must be pre-created"


def database_name(dump_file: Path, extension: str = ".sql") -> str:
    """
    Nombre de base de datos a partir del archivo de dump.

    Se toma el nombre sin la extensión, literal (mayúsculas y guiones incluidos):
    my-app.sql → my-app
    """
    name = Path(dump_file).name
    if extension and name.endswith(extension):
        return name[: -len(extension)]
    return Path(name).stem


def decide_import(database: str, table_count: Optional[int]) -> Action:
    """
    Acción para una base según su número de tablas.

    None → la base no existe (nunca se crea aquí) → FAIL
    0    → IMPORT
    > 0  → SKIP
    """
    if table_count is None:
        return Action.fail(database, DATABASE_NOT_PRECREATED)
    if table_count > 0:
        return Action.skip(database, f"la base ya tiene {table_count} tabla(s)")
    return Action(ActionKind.IMPORT, database, "base vacía")
