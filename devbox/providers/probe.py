"""
Módulo Probe - Sondeos de solo lectura sobre el host
(dpkg, filesystem, servicios, MySQL). Implementa core.runtime.StateProbe.

La salida de las herramientas se interpreta SOLO aquí; hacia arriba
se devuelven tipos (Optional[str], bool, Optional[int]).
"""

import shutil
from pathlib import Path
from typing import Callable, Optional

from devbox.core.errors import ProbeFailure
from devbox.providers.mysql import MySQLClient
from devbox.providers.shell import Runner, run_command

# dpkg-query: "<estado> <versión>"; solo "installed" cuenta como instalado
_DPKG_FORMAT = "${db:Status-Status} ${Version}\\n"


def parse_dpkg_status(output: str) -> Optional[str]:
    """
    Interpreta la salida de dpkg-query -W -f='${db:Status-Status} ${Version}'.

    Un paquete a medio instalar (half-installed, unpacked, config-files...)
    se considera NO instalado: así una instalación interrumpida se reintenta.

    Returns:
        La versión instalada o None
    """
    for line in output.splitlines():
        parts = line.strip().split(" ", 1)
        if len(parts) == 2 and parts[0] == "installed" and parts[1].strip():
            return parts[1].strip()
    return None


class HostProbe:
    """Responde preguntas de solo lectura sobre el host local"""

    def __init__(
        self,
        mysql: Optional[MySQLClient] = None,
        run: Runner = run_command,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.mysql = mysql
        self.run = run
        self.which = which

    def _require(self, tool: str) -> None:
        if self.which(tool) is None:
            raise ProbeFailure(f"Herramienta no disponible: {tool}")

    def package_version(self, name: str) -> Optional[str]:
        """Versión instalada de un paquete apt o None."""
        self._require("dpkg-query")
        ok, stdout, _ = self.run(["dpkg-query", "-W", f"-f={_DPKG_FORMAT}", name], timeout=10)
        if not ok:
            # dpkg-query sale con 1 cuando el paquete no es conocido
            return None
        return parse_dpkg_status(stdout)

    def path_exists(self, path: Path) -> bool:
        return Path(path).exists()

    def service_running(self, name: str) -> bool:
        self._require("service")
        ok, _, _ = self.run(["service", name, "status"], timeout=10)
        return ok

    def table_count(self, database: str) -> Optional[int]:
        if self.mysql is None:
            raise ProbeFailure("No hay conexión MySQL configurada")
        return self.mysql.table_count(database)
