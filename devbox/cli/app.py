"""
Aplicación CLI de devbox.

Solo compone comandos; la lógica vive en core, providers y pipeline.
Códigos de salida: 0 completado (con o sin red), 1 etapas fallidas,
2 configuración inválida.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from devbox import __version__
from devbox.core.desired import DesiredState, DesiredStateLoader
from devbox.core.errors import ConfigError, ProbeFailure
from devbox.core.logger import LOGGER
from devbox.core.reconcile import database_name
from devbox.core.runtime import ObservedState, config_path
from devbox.pipeline import PipelineOutcome, build_pipeline, host_probe
from devbox.pipeline.report import render_report
from devbox.providers.dumps import list_dumps
from devbox.providers.network import Connectivity, NetworkGate

app = typer.Typer(
    name="devbox",
    help="devbox - Aprovisionamiento idempotente de la VM de desarrollo",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

EXIT_FAILURES = 1
EXIT_CONFIG = 2

ConfigOption = typer.Option(None, "--config", "-c", help="Ruta a provision.yaml")


def _load(config: Optional[Path]) -> DesiredState:
    """Resuelve y carga el estado deseado; ConfigError termina con código 2."""
    try:
        path = config_path(config)
        desired = DesiredStateLoader().load(path)
    except ConfigError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(code=EXIT_CONFIG)
    LOGGER.debug("Estado deseado cargado desde %s", path)
    console.print(f"[dim]Configuración: {escape(str(path))}[/dim]")
    return desired


def _run(config: Optional[Path], dry_run: bool, verbose: bool) -> None:
    desired = _load(config)
    report = build_pipeline().run(desired, host_probe(desired), dry_run=dry_run)
    render_report(report, console, verbose=verbose)
    if report.outcome == PipelineOutcome.COMPLETED_WITH_FAILURES:
        raise typer.Exit(code=EXIT_FAILURES)


@app.command()
def provision(
    config: Optional[Path] = ConfigOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Calcula el plan sin modificar el host"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Muestra también las acciones omitidas"),
):
    """Lleva el host al estado deseado (idempotente)"""
    console.print(Panel.fit("[bold cyan]devbox provision[/bold cyan]", border_style="cyan"))
    _run(config, dry_run, verbose)


@app.command()
def plan(
    config: Optional[Path] = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Muestra también las acciones omitidas"),
):
    """Muestra qué haría provision (equivale a --dry-run)"""
    console.print(Panel.fit("[bold cyan]devbox plan[/bold cyan] [dim](dry-run)[/dim]", border_style="cyan"))
    _run(config, True, verbose)


@app.command()
def status(config: Optional[Path] = ConfigOption):
    """Muestra el estado observado del host frente al deseado"""
    desired = _load(config)
    observed = ObservedState(host_probe(desired))

    table = Table(title="Paquetes", show_header=True, header_style="bold cyan")
    table.add_column("Paquete", style="cyan")
    table.add_column("Versión instalada", style="green")
    installed = observed.packages(desired.packages)
    for name in desired.packages:
        version = installed.get(name)
        table.add_row(name, version if version else "[red]✘ no instalado[/red]")
    console.print(table)

    table = Table(title="Recursos y secretos", show_header=True, header_style="bold cyan")
    table.add_column("Ruta", style="cyan")
    table.add_column("Presente")
    for path in desired.paths_in_use():
        table.add_row(escape(str(path)), "[green]✔[/green]" if observed.path_exists(path) else "[red]✘[/red]")
    console.print(table)

    if desired.services:
        table = Table(title="Servicios", show_header=True, header_style="bold cyan")
        table.add_column("Servicio", style="cyan")
        table.add_column("Estado")
        for service in desired.services:
            try:
                state = "[green]✔ en ejecución[/green]" if observed.service_running(service) else "[red]✘ detenido[/red]"
            except ProbeFailure as e:
                state = f"[yellow]? {escape(str(e))}[/yellow]"
            table.add_row(service, state)
        console.print(table)

    if desired.dumps is not None:
        table = Table(title="Bases de datos", show_header=True, header_style="bold cyan")
        table.add_column("Dump", style="cyan")
        table.add_column("Base", style="green")
        table.add_column("Tablas")
        for dump_file in list_dumps(desired.dumps.directory, desired.dumps.extension):
            db = database_name(dump_file, desired.dumps.extension)
            try:
                count = observed.table_count(db)
                tables = "[red]no existe[/red]" if count is None else str(count)
            except ProbeFailure as e:
                tables = f"[yellow]? {escape(str(e))}[/yellow]"
            table.add_row(dump_file.name, db, tables)
        console.print(table)


@app.command("check-network")
def check_network(config: Optional[Path] = ConfigOption):
    """Comprueba la conectividad de salida con la configuración de red"""
    desired = _load(config)
    gate = NetworkGate(desired.network)
    if gate.check() == Connectivity.REACHABLE:
        console.print(f"[green]✅ Conexión de red detectada ({desired.network.probe_url})[/green]")
        return
    console.print(f"[yellow]⚠ Sin conexión de red: {desired.network.probe_url} no responde[/yellow]")
    raise typer.Exit(code=EXIT_FAILURES)


@app.command()
def version():
    """Muestra la versión de devbox"""
    console.print(Panel.fit(
        "[bold cyan]devbox[/bold cyan]\n"
        "[dim]Aprovisionamiento idempotente de la VM de desarrollo[/dim]\n\n"
        f"[bold]Versión:[/bold] {__version__}",
        border_style="cyan"
    ))


def main():
    app()
