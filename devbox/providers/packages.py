"""
Instalación de paquetes apt en UNA sola invocación batch.
"""

from typing import List, Optional

from devbox.core.errors import InstallError
from devbox.core.logger import LOGGER
from devbox.providers.shell import Runner, run_command

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class AptInstaller:
    """apt-get update + apt-get install de toda la lista + apt-get clean"""

    def __init__(self, timeout: Optional[float] = 600, run: Runner = run_command):
        self.timeout = timeout
        self.run = run

    def install(self, packages: List[str]) -> None:
        """
        Instala los paquetes dados (lista vacía = no hace nada)

        Raises:
            InstallError: si falla update o install
        """
        if not packages:
            LOGGER.info("No hay paquetes apt que instalar")
            return

        LOGGER.info("Actualizando lista de paquetes...")
        ok, _, stderr = self.run(["apt-get", "update", "-y"], timeout=self.timeout, env=_APT_ENV)
        if not ok:
            raise InstallError(f"apt-get update falló: {stderr.strip()}")

        LOGGER.info("Instalando paquetes: %s", ", ".join(packages))
        ok, _, stderr = self.run(
            ["apt-get", "install", "-y"] + list(packages),
            timeout=self.timeout,
            env=_APT_ENV,
        )
        if not ok:
            raise InstallError(f"apt-get install falló: {stderr.strip()}")

        # Limpiar caché de apt (no crítico)
        ok, _, stderr = self.run(["apt-get", "clean"], timeout=self.timeout)
        if not ok:
            LOGGER.warning("apt-get clean falló: %s", stderr.strip())
