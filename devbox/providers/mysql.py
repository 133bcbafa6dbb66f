"""
Cliente MySQL mínimo sobre el binario `mysql`.

Los nombres de base se pasan literales: como un único argumento de argv
(--database=<nombre>) o, dentro de SQL, como literal escapado o identificador
entre backquotes. Nunca pasan por una shell, así que guiones y mayúsculas
se conservan (my-app sigue siendo my-app).
"""

from pathlib import Path
from typing import Dict, List, Optional

from devbox.core.desired.models import DatabaseConfig
from devbox.core.errors import CommandError, ImportFailure, ProbeFailure
from devbox.core.logger import LOGGER
from devbox.providers.shell import Runner, run_command


def quote_literal(value: str) -> str:
    """Literal de cadena SQL: 'my-app' (duplica las comillas simples)."""
    return "'" + value.replace("'", "''") + "'"


def quote_identifier(value: str) -> str:
    """Identificador SQL: `my-app` (duplica los backquotes)."""
    return "`" + value.replace("`", "``") + "`"


class MySQLClient:
    """Consultas, importación y limpieza de bases para el DumpImporter"""

    def __init__(
        self,
        config: Optional[DatabaseConfig] = None,
        timeout: float = 600,
        run: Runner = run_command,
    ):
        self.config = config or DatabaseConfig()
        self.timeout = timeout
        self.run = run

    def _command(self, *extra: str) -> List[str]:
        cmd = ["mysql"]
        # --defaults-extra-file debe ser la primera opción
        if self.config.defaults_file:
            cmd.append(f"--defaults-extra-file={self.config.defaults_file}")
        cmd += [
            f"--host={self.config.host}",
            f"--user={self.config.user}",
            "--batch",
            "--skip-column-names",
        ]
        cmd.extend(extra)
        return cmd

    def _env(self) -> Optional[Dict[str, str]]:
        # La contraseña viaja por entorno, nunca por argv (visible en ps)
        if self.config.password:
            return {"MYSQL_PWD": self.config.password}
        return None

    def query(self, sql: str, timeout: float = 30) -> List[List[str]]:
        """
        Ejecuta SQL y devuelve las filas (columnas separadas por tab).

        Raises:
            CommandError: si mysql termina con error
        """
        ok, stdout, stderr = self.run(self._command("-e", sql), timeout=timeout, env=self._env())
        if not ok:
            raise CommandError(stderr.strip() or "mysql terminó con error")
        return [line.split("\t") for line in stdout.splitlines() if line.strip()]

    def table_count(self, database: str) -> Optional[int]:
        """
        Número de tablas de la base, o None si la base no existe.

        Raises:
            ProbeFailure: si no se pudo consultar el servidor
        """
        sql = (
            "SELECT COUNT(t.TABLE_NAME) FROM information_schema.SCHEMATA s "
            "LEFT JOIN information_schema.TABLES t ON t.TABLE_SCHEMA = s.SCHEMA_NAME "
            f"WHERE s.SCHEMA_NAME = {quote_literal(database)} GROUP BY s.SCHEMA_NAME"
        )
        try:
            rows = self.query(sql)
        except CommandError as e:
            raise ProbeFailure(f"No se pudo consultar la base {database}: {e}")
        if not rows:
            return None
        try:
            return int(rows[0][0])
        except (IndexError, ValueError):
            raise ProbeFailure(f"Respuesta inesperada de mysql para {database}: {rows!r}")

    def load_dump(self, database: str, dump_file: Path) -> None:
        """
        Importa el dump en la base (stdin = archivo).

        Raises:
            ImportFailure: si mysql rechaza el dump o no responde a tiempo
        """
        ok, _, stderr = self.run(
            self._command(f"--database={database}"),
            timeout=self.timeout,
            env=self._env(),
            stdin_path=Path(dump_file),
        )
        if not ok:
            raise ImportFailure(stderr.strip() or f"mysql rechazó {Path(dump_file).name}")

    def purge(self, database: str) -> int:
        """
        Elimina todas las tablas y vistas de la base (deshace una importación parcial).

        Returns:
            Número de objetos eliminados
        """
        rows = self.query(
            "SELECT TABLE_NAME, TABLE_TYPE FROM information_schema.TABLES "
            f"WHERE TABLE_SCHEMA = {quote_literal(database)}"
        )
        if not rows:
            return 0
        db = quote_identifier(database)
        views = [f"{db}.{quote_identifier(r[0])}" for r in rows if len(r) > 1 and r[1] == "VIEW"]
        tables = [f"{db}.{quote_identifier(r[0])}" for r in rows if not (len(r) > 1 and r[1] == "VIEW")]
        statements = ["SET FOREIGN_KEY_CHECKS=0"]
        if views:
            statements.append("DROP VIEW IF EXISTS " + ", ".join(views))
        if tables:
            statements.append("DROP TABLE IF EXISTS " + ", ".join(tables))
        self.query("; ".join(statements), timeout=self.timeout)
        LOGGER.info("Base %s vaciada (%d objeto(s))", database, len(rows))
        return len(rows)
