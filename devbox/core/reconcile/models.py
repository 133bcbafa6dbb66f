"""
Modelos del plan de acciones (deseado vs observado).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List


class ActionKind(str, Enum):
    """Tipo de acción de reconciliación"""
    INSTALL = "install"
    CLONE = "clone"
    PULL = "pull"
    GENERATE = "generate"
    IMPORT = "import"
    COPY = "copy"
    RESTART = "restart"
    GRANT = "grant"  # Alta de usuario en grupo
    SKIP = "skip"  # Estado ya satisfecho; no muta nada
    FAIL = "fail"  # No se pudo decidir o aplicar; reason lleva el motivo


@dataclass(frozen=True)
class Action:
    """Unidad de trabajo (o no-op explícito) derivada de un diff."""
    kind: ActionKind
    target: str
    reason: str = ""
    changed: bool = True  # False para SKIP/FAIL y para un PULL sin cambios upstream

    @property
    def is_skip(self) -> bool:
        return self.kind == ActionKind.SKIP

    @property
    def is_failure(self) -> bool:
        return self.kind == ActionKind.FAIL

    @property
    def is_noop(self) -> bool:
        """True si la acción no modificó (ni modificaría) el host."""
        return not self.changed and not self.is_failure

    @classmethod
    def skip(cls, target: str, reason: str) -> "Action":
        return cls(ActionKind.SKIP, target, reason, changed=False)

    @classmethod
    def fail(cls, target: str, reason: str) -> "Action":
        return cls(ActionKind.FAIL, target, reason, changed=False)


@dataclass
class ActionPlan:
    """Lista de acciones calculada para una etapa; se consume de inmediato."""
    actions: List[Action] = field(default_factory=list)

    def add(self, action: Action) -> Action:
        self.actions.append(action)
        return action

    def extend(self, actions: Iterable[Action]) -> None:
        self.actions.extend(actions)

    def of_kind(self, kind: ActionKind) -> List[Action]:
        return [a for a in self.actions if a.kind == kind]

    @property
    def failures(self) -> List[Action]:
        return [a for a in self.actions if a.is_failure]

    @property
    def changed(self) -> bool:
        return any(a.changed for a in self.actions)

    @property
    def is_noop(self) -> bool:
        """Idempotencia: True si todo el plan son no-ops (Skip, Pull sin cambios)."""
        return all(a.is_noop for a in self.actions)

    def __iter__(self):
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)
