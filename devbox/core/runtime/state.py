"""
Contratos de estado observado.

El core NO consulta el host; eso lo hacen los providers (HostProbe).
Aquí se define el protocolo de sondeo y el snapshot perezoso por etapa.
"""

from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol

from devbox.core.errors import ProbeFailure


class StateProbe(Protocol):
    """Protocolo: quien responde preguntas de solo lectura sobre el host."""

    def package_version(self, name: str) -> Optional[str]:
        """Versión instalada del paquete o None si no está instalado."""
        ...

    def path_exists(self, path: Path) -> bool:
        ...

    def service_running(self, name: str) -> bool:
        ...

    def table_count(self, database: str) -> Optional[int]:
        """Número de tablas de la base o None si la base no existe."""
        ...


class ObservedState:
    """
    Snapshot perezoso del host para UNA etapa.

    Cada respuesta se memoriza solo hasta que la etapa muta el host:
    después de una mutación hay que llamar a mark_stale() para forzar
    un sondeo nuevo antes de cualquier decisión que dependa de ella.
    Una etapa nueva construye siempre un ObservedState nuevo.
    """

    def __init__(self, probe: StateProbe):
        self.probe = probe
        self._packages: Dict[str, Optional[str]] = {}
        self._paths: Dict[Path, bool] = {}
        self._services: Dict[str, bool] = {}
        self._tables: Dict[str, Optional[int]] = {}

    def mark_stale(self) -> None:
        """Descarta todo lo memorizado (llamar tras cualquier mutación)."""
        self._packages.clear()
        self._paths.clear()
        self._services.clear()
        self._tables.clear()

    def package_version(self, name: str) -> Optional[str]:
        if name not in self._packages:
            self._packages[name] = self.probe.package_version(name)
        return self._packages[name]

    def packages(self, names: Iterable[str]) -> Dict[str, str]:
        """
        Mapa paquete → versión solo de los paquetes instalados.

        Si el sondeo de un paquete falla se considera no instalado:
        instalar un paquete ya presente es idempotente.
        """
        observed: Dict[str, str] = {}
        for name in names:
            try:
                version = self.package_version(name)
            except ProbeFailure:
                continue
            if version is not None:
                observed[name] = version
        return observed

    def path_exists(self, path: Path) -> bool:
        path = Path(path)
        if path not in self._paths:
            self._paths[path] = self.probe.path_exists(path)
        return self._paths[path]

    def service_running(self, name: str) -> bool:
        if name not in self._services:
            self._services[name] = self.probe.service_running(name)
        return self._services[name]

    def table_count(self, database: str) -> Optional[int]:
        if database not in self._tables:
            self._tables[database] = self.probe.table_count(database)
        return self._tables[database]
