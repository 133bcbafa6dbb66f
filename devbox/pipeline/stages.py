"""
Etapas del pipeline de aprovisionamiento.

Cada etapa construye su propio ObservedState (nunca reutiliza el de otra),
decide con core.reconcile y ejecuta solo lo necesario. Los fallos a nivel de
acción se registran como Action FAIL y la etapa continúa con el resto.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Tuple

from devbox.core.desired.models import DesiredState
from devbox.core.errors import DevboxError, ProbeFailure
from devbox.core.logger import LOGGER
from devbox.core.reconcile import Action, ActionKind, ActionPlan, diff, plan_packages
from devbox.core.runtime.state import ObservedState, StateProbe
from devbox.providers.dumps import DumpImporter, DumpLoader
from devbox.providers.files import FileSync
from devbox.providers.mysql import MySQLClient
from devbox.providers.network import Connectivity, NetworkGate
from devbox.providers.packages import AptInstaller
from devbox.providers.secrets import OpenSSLGenerators, SecretMaterializer, SecretOutcome
from devbox.providers.shell import Runner, run_command
from devbox.providers.sync import ResourceSync, SyncOutcome
from devbox.providers.system import ensure_user_in_group, service_action


class StageStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    NO_NETWORK = "no-network"  # Salida degradada: corta el pipeline sin ser error
    NOT_RUN = "not-run"


@dataclass
class StageResult:
    name: str
    status: StageStatus
    plan: ActionPlan = field(default_factory=ActionPlan)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == StageStatus.FAILED

    @property
    def changed(self) -> bool:
        return self.plan.changed

    def failure_reasons(self):
        if self.error:
            return [self.error]
        return [f"{a.target}: {a.reason}" for a in self.plan.failures]


@dataclass(frozen=True)
class StageContext:
    """Lo único que se pasa de una etapa a la siguiente son los resultados previos."""
    desired: DesiredState
    probe: StateProbe
    dry_run: bool = False
    previous: Tuple[StageResult, ...] = ()

    def observe(self) -> ObservedState:
        return ObservedState(self.probe)

    @property
    def changed_so_far(self) -> bool:
        return any(r.changed for r in self.previous)


class Stage(ABC):
    """Clase base: execute() devuelve el plan; run() lo envuelve en StageResult"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def execute(self, ctx: StageContext) -> ActionPlan:
        """Calcula y (si no es dry-run) aplica el plan. Puede lanzar DevboxError."""
        pass

    def run(self, ctx: StageContext) -> StageResult:
        plan = self.execute(ctx)
        status = StageStatus.FAILED if plan.failures else StageStatus.OK
        return StageResult(self.name, status, plan)


class NetworkGateStage(Stage):
    """Compuerta de red: si no hay conexión el pipeline termina aquí"""

    def __init__(self, gate_factory: Callable[[DesiredState], NetworkGate], name: str = "network"):
        super().__init__(name)
        self.gate_factory = gate_factory

    def execute(self, ctx: StageContext) -> ActionPlan:
        gate = self.gate_factory(ctx.desired)
        plan = ActionPlan()
        if gate.check() == Connectivity.REACHABLE:
            plan.add(Action.skip(gate.config.probe_url, "conexión de red detectada"))
        return plan

    def run(self, ctx: StageContext) -> StageResult:
        plan = self.execute(ctx)
        if not plan.actions:
            return StageResult(self.name, StageStatus.NO_NETWORK, plan)
        return StageResult(self.name, StageStatus.OK, plan)


class FilesStage(Stage):
    """Copia de perfil (dotfiles, bin) o de configuración de servidores"""

    def __init__(self, name: str, attribute: str):
        super().__init__(name)
        self.attribute = attribute

    def execute(self, ctx: StageContext) -> ActionPlan:
        file_sync = FileSync(dry_run=ctx.dry_run)
        plan = ActionPlan()
        for spec in getattr(ctx.desired, self.attribute):
            plan.extend(file_sync.sync(spec))
        return plan


class PackagesStage(Stage):
    """Diff de paquetes + una sola instalación batch"""

    def __init__(
        self,
        installer: Optional[AptInstaller] = None,
        run: Runner = run_command,
        name: str = "packages",
    ):
        super().__init__(name)
        self.installer = installer
        self.run_command = run

    def execute(self, ctx: StageContext) -> ActionPlan:
        desired = ctx.desired.packages
        observed = ctx.observe()
        installed = observed.packages(desired)
        plan = plan_packages(desired, installed)
        install_list = diff(desired, installed)
        if not install_list or ctx.dry_run:
            return plan

        installer = self.installer or AptInstaller(
            timeout=ctx.desired.transport_timeout, run=self.run_command
        )
        installer.install(install_list)

        # Verificar con un sondeo nuevo: el estado cambió
        observed.mark_stale()
        installed = observed.packages(install_list)
        verified = ActionPlan()
        for action in plan:
            if action.kind == ActionKind.INSTALL and action.target not in installed:
                verified.add(Action.fail(action.target, "sigue sin estar instalado tras apt-get install"))
            elif action.kind == ActionKind.INSTALL:
                verified.add(Action(ActionKind.INSTALL, action.target, f"instalado ({installed[action.target]})"))
            else:
                verified.add(action)
        return verified


class SecretsStage(Stage):
    """Clave y certificado TLS: generar si faltan, reutilizar si existen"""

    def __init__(
        self,
        materializer: Optional[SecretMaterializer] = None,
        run: Runner = run_command,
        name: str = "secrets",
    ):
        super().__init__(name)
        self.materializer = materializer or SecretMaterializer(OpenSSLGenerators(run=run))

    def execute(self, ctx: StageContext) -> ActionPlan:
        plan = ActionPlan()
        observed = ctx.observe()
        for spec in ctx.desired.secrets:
            target = str(spec.path)
            if ctx.dry_run:
                if observed.path_exists(spec.path):
                    plan.add(Action.skip(target, "ya existe; se reutiliza"))
                else:
                    plan.add(Action(ActionKind.GENERATE, target, f"se generaría ({spec.kind.value})"))
                continue
            try:
                outcome = self.materializer.ensure_spec(spec)
            except DevboxError as e:
                plan.add(Action.fail(target, str(e)))
                continue
            if outcome == SecretOutcome.GENERATED:
                plan.add(Action(ActionKind.GENERATE, target, spec.kind.value))
            else:
                plan.add(Action.skip(target, "ya existe; se reutiliza"))
        return plan


class ServicesStage(Stage):
    """
    Arranca servicios detenidos y reinicia los que corren si alguna
    etapa anterior de esta ejecución cambió el host.
    """

    def __init__(self, run: Runner = run_command, name: str = "services"):
        super().__init__(name)
        self.run_command = run

    def execute(self, ctx: StageContext) -> ActionPlan:
        plan = ActionPlan()
        observed = ctx.observe()
        restart = ctx.changed_so_far
        for service in ctx.desired.services:
            try:
                running = observed.service_running(service)
            except ProbeFailure as e:
                plan.add(Action.fail(service, str(e)))
                continue
            if running and not restart:
                plan.add(Action.skip(service, "en ejecución; sin cambios que aplicar"))
                continue
            verb = "restart" if running else "start"
            reason = "reiniciado tras cambios" if running else "iniciado (estaba detenido)"
            if not ctx.dry_run:
                try:
                    service_action(service, verb, run=self.run_command)
                except DevboxError as e:
                    plan.add(Action.fail(service, str(e)))
                    continue
            plan.add(Action(ActionKind.RESTART, service, reason))
        return plan


class GroupsStage(Stage):
    """Pertenencia de usuarios a grupos (p. ej. vagrant en www-data)"""

    def __init__(self, run: Runner = run_command, name: str = "groups"):
        super().__init__(name)
        self.run_command = run

    def execute(self, ctx: StageContext) -> ActionPlan:
        plan = ActionPlan()
        for membership in ctx.desired.groups:
            plan.add(ensure_user_in_group(
                membership.user, membership.group, run=self.run_command, dry_run=ctx.dry_run
            ))
        return plan


class DumpsStage(Stage):
    """Importa dumps solo en bases existentes y vacías"""

    def __init__(self, loader: Optional[DumpLoader] = None, run: Runner = run_command, name: str = "dumps"):
        super().__init__(name)
        self.loader = loader
        self.run_command = run

    def execute(self, ctx: StageContext) -> ActionPlan:
        plan = ActionPlan()
        dumps = ctx.desired.dumps
        if dumps is None:
            return plan
        loader = self.loader or MySQLClient(
            dumps.database, timeout=ctx.desired.transport_timeout, run=self.run_command
        )
        importer = DumpImporter(loader, extension=dumps.extension, dry_run=ctx.dry_run)
        # Sondeo directo por archivo: cada decisión ve el estado actual
        for result in importer.import_all(dumps.directory, ctx.probe):
            plan.add(result.to_action())
        return plan


class ResourcesStage(Stage):
    """Clona o actualiza cada recurso externo; un fallo no detiene a los demás"""

    def __init__(
        self,
        resource_sync: Optional[ResourceSync] = None,
        run: Runner = run_command,
        name: str = "resources",
    ):
        super().__init__(name)
        self.resource_sync = resource_sync
        self.run_command = run

    def execute(self, ctx: StageContext) -> ActionPlan:
        plan = ActionPlan()
        resource_sync = self.resource_sync or ResourceSync(
            timeout=ctx.desired.transport_timeout, run=self.run_command
        )
        for spec in ctx.desired.resources:
            if ctx.dry_run:
                if resource_sync.is_present(spec):
                    plan.add(Action(ActionKind.PULL, spec.name, "se actualizaría", changed=False))
                else:
                    plan.add(Action(ActionKind.CLONE, spec.name, f"se descargaría en {spec.path}"))
                continue
            try:
                result = resource_sync.sync_resource(spec)
            except (DevboxError, OSError) as e:
                LOGGER.error("Recurso %s: %s", spec.name, e)
                plan.add(Action.fail(spec.name, str(e)))
                continue
            if result.outcome == SyncOutcome.CLONED:
                plan.add(Action(ActionKind.CLONE, spec.name, f"descargado en {spec.path}"))
            elif result.changed:
                plan.add(Action(ActionKind.PULL, spec.name, "actualizado desde upstream"))
            else:
                plan.add(Action(ActionKind.PULL, spec.name, "sin cambios upstream", changed=False))
        return plan
