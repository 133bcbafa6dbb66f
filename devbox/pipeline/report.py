"""
Presentación del reporte del pipeline con rich (tablas por etapa).
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from devbox.core.reconcile import ActionKind
from devbox.pipeline.runner import PipelineOutcome, PipelineReport
from devbox.pipeline.stages import StageResult, StageStatus

_STATUS_STYLE = {
    StageStatus.OK: "[green]✔ ok[/green]",
    StageStatus.FAILED: "[red]✘ falló[/red]",
    StageStatus.NO_NETWORK: "[yellow]⚠ sin red[/yellow]",
    StageStatus.NOT_RUN: "[dim]- omitida[/dim]",
}

_KIND_STYLE = {
    ActionKind.SKIP: "dim",
    ActionKind.FAIL: "red",
}


def _summary(result: StageResult) -> str:
    if result.error:
        return escape(result.error)
    if not result.plan.actions:
        return "nada que hacer"
    counts = {}
    for action in result.plan:
        counts[action.kind.value] = counts.get(action.kind.value, 0) + 1
    return ", ".join(f"{kind}: {n}" for kind, n in counts.items())


def render_stages(report: PipelineReport, console: Console) -> None:
    table = Table(title="Etapas", show_header=True, header_style="bold cyan")
    table.add_column("Etapa", style="cyan")
    table.add_column("Estado")
    table.add_column("Resumen")
    for result in report.results:
        table.add_row(result.name, _STATUS_STYLE.get(result.status, result.status.value), _summary(result))
    console.print(table)


def render_actions(report: PipelineReport, console: Console, show_skips: bool = False) -> None:
    """Detalle de acciones por etapa; los Skip solo con show_skips."""
    for result in report.results:
        actions = [a for a in result.plan if show_skips or not a.is_skip]
        if not actions:
            continue
        table = Table(title=f"Acciones: {result.name}", show_header=True, header_style="bold")
        table.add_column("Acción", style="cyan")
        table.add_column("Objetivo", style="green")
        table.add_column("Motivo", style="yellow")
        for action in actions:
            style = _KIND_STYLE.get(action.kind)
            kind = f"[{style}]{action.kind.value}[/{style}]" if style else action.kind.value
            table.add_row(kind, escape(action.target), escape(action.reason))
        console.print(table)
        console.print()


def render_report(report: PipelineReport, console: Optional[Console] = None, verbose: bool = False) -> None:
    """Muestra el reporte completo: etapas, acciones y resultado final"""
    console = console or Console()
    render_stages(report, console)
    console.print()
    render_actions(report, console, show_skips=verbose)

    prefix = "[dim](dry-run)[/dim] " if report.dry_run else ""
    if report.outcome == PipelineOutcome.COMPLETED:
        body = "[green]✅ Aprovisionamiento completado[/green]"
        if report.is_noop:
            body += "\n[dim]Sin cambios: el host ya estaba en el estado deseado[/dim]"
        border = "green"
    elif report.outcome == PipelineOutcome.COMPLETED_WITHOUT_NETWORK:
        body = "[yellow]⚠ Completado sin red: se omitieron las etapas que la requieren[/yellow]"
        border = "yellow"
    else:
        lines = [f"[red]✘ Completado con fallos en {len(report.failed_stages)} etapa(s)[/red]"]
        for name, reason in report.failures():
            lines.append(f"  • [bold]{name}[/bold]: {escape(reason)}")
        if report.network_skipped:
            lines.append("[yellow]Además no hubo red: parte del pipeline no se ejecutó[/yellow]")
        body = "\n".join(lines)
        border = "red"
    console.print(Panel.fit(f"{prefix}{body}\n[dim]{report.elapsed:.1f}s[/dim]", border_style=border))
