"""
Reconciliación: modelos del plan y decisiones puras (sin I/O).
"""

from devbox.core.reconcile.models import Action, ActionKind, ActionPlan
from devbox.core.reconcile.packages import diff, plan_packages
from devbox.core.reconcile.dumps import (
    DATABASE_NOT_PRECREATED,
    database_name,
    decide_import,
)

__all__ = [
    "Action",
    "ActionKind",
    "ActionPlan",
    "diff",
    "plan_packages",
    "DATABASE_NOT_PRECREATED",
    "database_name",
    "decide_import",
]
