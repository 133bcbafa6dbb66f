"""
Orquestación de sistema: pertenencia a grupos y servicios.

Las operaciones que modifican usuarios o reinician servicios requieren
ejecución como root (la VM se aprovisiona con sudo).
"""

from devbox.core.errors import CommandError
from devbox.core.logger import LOGGER
from devbox.core.reconcile import Action, ActionKind
from devbox.providers.shell import Runner, run_command


def user_in_group(user: str, group_name: str, run: Runner = run_command) -> bool:
    """Comprueba si el usuario pertenece al grupo."""
    ok, out, _ = run(["id", "-nG", user], timeout=10)
    if not ok:
        return False
    return group_name in out.split()


def ensure_user_in_group(
    user: str,
    group_name: str,
    run: Runner = run_command,
    dry_run: bool = False,
) -> Action:
    """
    Añade el usuario al grupo si no pertenece ya.
    Requiere privilegios elevados (sudo) para usermod.
    """
    target = f"{user}:{group_name}"
    if user_in_group(user, group_name, run):
        return Action.skip(target, f"{user} ya está en el grupo {group_name}")
    if dry_run:
        return Action(ActionKind.GRANT, target, f"se añadiría {user} a {group_name}")
    ok, _, stderr = run(["usermod", "-a", "-G", group_name, user], timeout=30)
    if not ok:
        return Action.fail(target, f"usermod falló: {stderr.strip()}")
    LOGGER.info("Usuario %s añadido al grupo %s", user, group_name)
    return Action(ActionKind.GRANT, target, f"{user} añadido a {group_name}")


def service_action(name: str, verb: str, run: Runner = run_command) -> None:
    """
    Ejecuta `service <name> <verb>` (start / restart).

    Raises:
        CommandError: si el servicio no arranca
    """
    ok, _, stderr = run(["service", name, verb], timeout=120)
    if not ok:
        raise CommandError(f"service {name} {verb} falló: {stderr.strip()}")
    LOGGER.info("Servicio %s: %s", name, verb)
