"""
Pipeline - Ejecuta las etapas de aprovisionamiento en orden estricto

Cada etapa termina antes de que empiece la siguiente. Un fallo en una etapa
se registra y el pipeline continúa; la compuerta de red es la única que
corta la ejecución (salida limpia, sin error).
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from devbox.core.desired.models import DesiredState
from devbox.core.errors import DevboxError
from devbox.core.logger import LOGGER
from devbox.core.runtime.state import StateProbe
from devbox.pipeline.stages import (
    DumpsStage,
    FilesStage,
    GroupsStage,
    NetworkGateStage,
    PackagesStage,
    ResourcesStage,
    SecretsStage,
    ServicesStage,
    Stage,
    StageContext,
    StageResult,
    StageStatus,
)
from devbox.providers.mysql import MySQLClient
from devbox.providers.network import NetworkGate
from devbox.providers.probe import HostProbe
from devbox.providers.shell import Runner, run_command


class PipelineOutcome(str, Enum):
    COMPLETED = "completed"
    COMPLETED_WITHOUT_NETWORK = "completed-without-network"
    COMPLETED_WITH_FAILURES = "completed-with-failures"


@dataclass
class PipelineReport:
    outcome: PipelineOutcome
    results: List[StageResult] = field(default_factory=list)
    elapsed: float = 0.0
    dry_run: bool = False

    @property
    def failed_stages(self) -> List[StageResult]:
        return [r for r in self.results if r.failed]

    @property
    def network_skipped(self) -> bool:
        return any(r.status == StageStatus.NO_NETWORK for r in self.results)

    @property
    def is_noop(self) -> bool:
        """True si ninguna etapa ejecutada cambió nada (segunda ejecución)."""
        return all(r.plan.is_noop for r in self.results if r.status != StageStatus.NOT_RUN)

    def failures(self) -> List[Tuple[str, str]]:
        return [(r.name, reason) for r in self.failed_stages for reason in r.failure_reasons()]

    def result(self, name: str) -> Optional[StageResult]:
        for r in self.results:
            if r.name == name:
                return r
        return None


class Pipeline:
    """Secuencia ordenada de etapas"""

    def __init__(self, stages: Sequence[Stage], clock: Callable[[], float] = time.monotonic):
        names = [s.name for s in stages]
        if len(names) != len(set(names)):
            raise ValueError(f"Nombres de etapa duplicados: {names}")
        self.stages = list(stages)
        self.clock = clock

    def run(self, desired: DesiredState, probe: StateProbe, dry_run: bool = False) -> PipelineReport:
        """
        Ejecuta todas las etapas.

        Args:
            desired: Estado deseado ya validado
            probe: Sondeo del host; cada etapa construye su propio ObservedState
            dry_run: Sondea pero no modifica el host

        Returns:
            PipelineReport con el resultado de cada etapa
        """
        started = self.clock()
        results: List[StageResult] = []
        remaining = list(self.stages)

        while remaining:
            stage = remaining.pop(0)
            ctx = StageContext(desired=desired, probe=probe, dry_run=dry_run, previous=tuple(results))
            LOGGER.info("Etapa %s", stage.name)
            try:
                result = stage.run(ctx)
            except (DevboxError, OSError) as e:
                LOGGER.error("Etapa %s falló: %s", stage.name, e)
                result = StageResult(stage.name, StageStatus.FAILED, error=str(e))

            for failure in result.plan.failures:
                LOGGER.error("%s: %s (%s)", stage.name, failure.target, failure.reason)
            results.append(result)

            if result.status == StageStatus.NO_NETWORK:
                LOGGER.warning("Sin red: se omiten %d etapa(s) restantes", len(remaining))
                results.extend(StageResult(s.name, StageStatus.NOT_RUN) for s in remaining)
                break

        report = PipelineReport(
            outcome=_outcome(results),
            results=results,
            elapsed=self.clock() - started,
            dry_run=dry_run,
        )
        LOGGER.info("Pipeline terminado: %s (%.1fs)", report.outcome.value, report.elapsed)
        return report


def _outcome(results: List[StageResult]) -> PipelineOutcome:
    # Los fallos pesan más que la falta de red; network_skipped queda en el reporte
    if any(r.failed for r in results):
        return PipelineOutcome.COMPLETED_WITH_FAILURES
    if any(r.status == StageStatus.NO_NETWORK for r in results):
        return PipelineOutcome.COMPLETED_WITHOUT_NETWORK
    return PipelineOutcome.COMPLETED


def default_stages(run: Runner = run_command, sleep: Callable[[float], None] = time.sleep) -> List[Stage]:
    """Etapas en el orden de aprovisionamiento de la VM."""
    def gate(desired: DesiredState) -> NetworkGate:
        return NetworkGate(desired.network, sleep=sleep)

    return [
        FilesStage("profile", "profile"),
        NetworkGateStage(gate, name="network"),
        PackagesStage(run=run),
        SecretsStage(run=run),
        FilesStage("config", "config_files"),
        ServicesStage(run=run),
        GroupsStage(run=run),
        DumpsStage(run=run),
        NetworkGateStage(gate, name="network-recheck"),
        ResourcesStage(run=run),
    ]


def host_probe(desired: DesiredState, run: Runner = run_command) -> HostProbe:
    """HostProbe con cliente MySQL si hay dumps configurados."""
    mysql = None
    if desired.dumps is not None:
        mysql = MySQLClient(desired.dumps.database, timeout=desired.transport_timeout, run=run)
    return HostProbe(mysql=mysql, run=run)


def build_pipeline(run: Runner = run_command, sleep: Callable[[float], None] = time.sleep) -> Pipeline:
    return Pipeline(default_stages(run=run, sleep=sleep))
