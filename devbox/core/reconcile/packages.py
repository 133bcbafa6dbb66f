"""
Diff de paquetes: conjunto deseado + versiones observadas -> lista de instalación.

Semántica "solo presencia": cualquier versión instalada satisface el paquete
deseado; no hay camino de actualización de versión.
"""

from typing import Iterable, List, Mapping

from devbox.core.reconcile.models import Action, ActionKind, ActionPlan


def diff(desired: Iterable[str], observed: Mapping[str, str]) -> List[str]:
    """
    Calcula la lista mínima de paquetes a instalar.

    Args:
        desired: Paquetes deseados (el orden se conserva)
        observed: Mapa paquete → versión de los paquetes instalados

    Returns:
        Paquetes sin entrada en observed, en orden deseado y sin duplicados
    """
    install: List[str] = []
    seen = set()
    for name in desired:
        if name in seen:
            continue
        seen.add(name)
        if name not in observed:
            install.append(name)
    return install


def plan_packages(desired: Iterable[str], observed: Mapping[str, str]) -> ActionPlan:
    """Igual que diff() pero con una acción Install/Skip por paquete (para mostrar)."""
    desired = list(desired)
    to_install = set(diff(desired, observed))
    plan = ActionPlan()
    seen = set()
    for name in desired:
        if name in seen:
            continue
        seen.add(name)
        if name in to_install:
            plan.add(Action(ActionKind.INSTALL, name, "no instalado"))
        else:
            plan.add(Action.skip(name, f"instalado ({observed[name]})"))
    return plan
