from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from devbox.core.desired.models import DesiredState, NetworkConfig
from devbox.core.errors import ImportFailure
from devbox.pipeline.runner import Pipeline
from devbox.pipeline.stages import (
    DumpsStage,
    FilesStage,
    GroupsStage,
    NetworkGateStage,
    PackagesStage,
    ResourcesStage,
    SecretsStage,
    ServicesStage,
)
from devbox.providers.network import Connectivity
from devbox.providers.secrets import OpenSSLGenerators, SecretMaterializer
from devbox.providers.sync import ResourceSync


def _arg_after(command: List[str], flag: str) -> str:
    return command[command.index(flag) + 1]


class FakeHost:
    """
    Host simulado: implementa StateProbe y la firma de run_command.

    Los comandos que modifican estado (service, usermod, openssl) actualizan
    el modelo en memoria; el resto devuelve éxito sin efecto.
    """

    def __init__(
        self,
        packages: Optional[Dict[str, str]] = None,
        running: Iterable[str] = (),
        groups: Optional[Dict[str, Iterable[str]]] = None,
        databases: Optional[Dict[str, int]] = None,
    ):
        self.packages = dict(packages or {})
        self.running = set(running)
        self.groups = {user: set(gs) for user, gs in (groups or {}).items()}
        self.databases = dict(databases or {})
        self.commands: List[List[str]] = []
        self.failing: Dict[str, str] = {}

    # --- StateProbe ---
    def package_version(self, name: str) -> Optional[str]:
        return self.packages.get(name)

    def path_exists(self, path: Path) -> bool:
        return Path(path).exists()

    def service_running(self, name: str) -> bool:
        return name in self.running

    def table_count(self, database: str) -> Optional[int]:
        return self.databases.get(database)

    # --- Runner ---
    def run(self, command, cwd=None, timeout=None, env=None, stdin_path=None):
        command = list(command)
        self.commands.append(command)
        head = command[0]
        if head in self.failing:
            return False, "", self.failing[head]
        if head == "service":
            name, verb = command[1], command[2]
            if verb in ("start", "restart"):
                self.running.add(name)
                return True, "", ""
            return name in self.running, "", ""
        if head == "id":
            return True, " ".join(sorted(self.groups.get(command[-1], ()))), ""
        if head == "usermod":
            group, user = command[3], command[4]
            self.groups.setdefault(user, set()).add(group)
            return True, "", ""
        if head == "openssl":
            out = Path(_arg_after(command, "-out"))
            out.write_text(f"{command[1]} generado\n")
            return True, "", ""
        return True, "", ""

    def commands_for(self, head: str) -> List[List[str]]:
        return [c for c in self.commands if c[0] == head]


class FakeInstaller:
    def __init__(self, host: FakeHost, version: str = "1.0", skip: Iterable[str] = ()):
        self.host = host
        self.version = version
        self.skip = set(skip)
        self.calls: List[List[str]] = []

    def install(self, packages: List[str]) -> None:
        self.calls.append(list(packages))
        for name in packages:
            if name not in self.skip:
                self.host.packages[name] = self.version


class FakeLoader:
    """DumpLoader en memoria: importar crea `tables` tablas en la base"""

    def __init__(self, host: FakeHost, tables: int = 3, fail: Iterable[str] = ()):
        self.host = host
        self.tables = tables
        self.fail = set(fail)
        self.loaded: List[str] = []
        self.purged: List[str] = []

    def load_dump(self, database: str, dump_file: Path) -> None:
        self.loaded.append(database)
        if database in self.fail:
            # import a medias: deja una tabla creada
            self.host.databases[database] = 1
            raise ImportFailure(f"ERROR 1064 importando {dump_file.name}")
        self.host.databases[database] = self.tables

    def purge(self, database: str) -> int:
        self.purged.append(database)
        dropped = self.host.databases.get(database, 0)
        self.host.databases[database] = 0
        return dropped


class FakeFetcher:
    """Fetcher que crea el directorio con .git y simula cambios upstream"""

    def __init__(self, upstream_changes: bool = False, error: Optional[Exception] = None):
        self.upstream_changes = upstream_changes
        self.error = error
        self.fetched: List[Path] = []
        self.updated: List[Path] = []

    def is_present(self, path: Path) -> bool:
        return (Path(path) / ".git").exists()

    def fetch(self, source: str, path: Path) -> None:
        if self.error:
            raise self.error
        self.fetched.append(Path(path))
        (Path(path) / ".git").mkdir(parents=True)

    def update(self, source: str, path: Path) -> bool:
        if self.error:
            raise self.error
        self.updated.append(Path(path))
        return self.upstream_changes


class FakeGate:
    def __init__(self, reachable: bool = True):
        self.config = NetworkConfig(probe_url="http://probe.test")
        self.reachable = reachable
        self.checks = 0

    def check(self) -> Connectivity:
        self.checks += 1
        return Connectivity.REACHABLE if self.reachable else Connectivity.UNREACHABLE


def make_pipeline(
    host: FakeHost,
    installer: Optional[FakeInstaller] = None,
    loader: Optional[FakeLoader] = None,
    fetchers: Optional[Dict[str, FakeFetcher]] = None,
    gate: Optional[FakeGate] = None,
) -> Pipeline:
    """Pipeline con el orden real de etapas y proveedores simulados."""
    gate = gate or FakeGate()
    if fetchers is None:
        fetchers = {"opcache-status": FakeFetcher()}
    return Pipeline([
        FilesStage("profile", "profile"),
        NetworkGateStage(lambda desired: gate, name="network"),
        PackagesStage(installer=installer or FakeInstaller(host), run=host.run),
        SecretsStage(materializer=SecretMaterializer(OpenSSLGenerators(run=host.run))),
        FilesStage("config", "config_files"),
        ServicesStage(run=host.run),
        GroupsStage(run=host.run),
        DumpsStage(loader=loader or FakeLoader(host)),
        NetworkGateStage(lambda desired: gate, name="network-recheck"),
        ResourcesStage(resource_sync=ResourceSync(fetchers=fetchers, run=host.run)),
    ])


@pytest.fixture
def host() -> FakeHost:
    return FakeHost(databases={"wordpress": 0, "my-app": 0})


@pytest.fixture
def desired(tmp_path: Path) -> DesiredState:
    """Estado deseado completo con todas las rutas dentro de tmp_path."""
    shared = tmp_path / "shared"
    (shared / "config").mkdir(parents=True)
    (shared / "config" / "bash_profile").write_text("export PATH=$HOME/bin:$PATH\n")
    (shared / "config" / "nginx.conf").write_text("worker_processes 1;\n")
    dumps = shared / "backups"
    dumps.mkdir()
    (dumps / "wordpress.sql").write_text("CREATE TABLE wp_posts (id int);\n")
    (dumps / "my-app.sql").write_text("CREATE TABLE users (id int);\n")

    root = tmp_path / "vm"
    return DesiredState(
        packages=("nginx", "php5-fpm", "git-core"),
        profile=[{"source": shared / "config" / "bash_profile", "destination": root / "home" / ".bash_profile"}],
        config_files=[{"source": shared / "config" / "nginx.conf", "destination": root / "etc" / "nginx" / "nginx.conf"}],
        secrets=[
            {"path": root / "etc" / "nginx" / "server.key", "kind": "rsa-key"},
            {
                "path": root / "etc" / "nginx" / "server.crt",
                "kind": "self-signed-cert",
                "key": root / "etc" / "nginx" / "server.key",
                "subject": "/CN=*.devm01.dev",
            },
        ],
        services=("nginx", "php5-fpm"),
        groups=[{"user": "vagrant", "group": "www-data"}],
        dumps={"directory": dumps},
        resources=[{
            "name": "opcache-status",
            "source": "https://github.com/rlerdorf/opcache-status.git",
            "path": root / "srv" / "www" / "default" / "opcache-status",
            "branch": "master",
        }],
    )


class ScriptedRunner:
    """
    Runner con respuestas por prefijo de comando; registra cada llamada.

    Una respuesta puede ser una tupla, una lista de tuplas (se consumen en
    orden, la última se repite) o una función que recibe el comando.
    """

    def __init__(self, responses=None, default=(True, "", "")):
        self.responses = list(responses or [])
        self.default = default
        self.calls = []

    def __call__(self, command, **kwargs):
        command = list(command)
        self.calls.append((command, kwargs))
        for prefix, result in self.responses:
            if command[: len(prefix)] == list(prefix):
                if callable(result):
                    return result(command)
                if isinstance(result, list):
                    return result.pop(0) if len(result) > 1 else result[0]
                return result
        return self.default

    @property
    def commands(self):
        return [command for command, _ in self.calls]
