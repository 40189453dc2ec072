"""Geometric transforms over tracks.

Importing this package registers every transform by kind so operations can be
described as plain data and applied through :func:`apply_operation`.
"""

from .base import (
    Operation,
    OperationSpec,
    apply_operation,
    get_spec,
    register,
    registered_kinds,
)
from .bend import BendArc, fit_bend, smooth_bend
from .delete import delete_region
from .gradient import smooth_gradient
from .loops import (
    LoopKind,
    Loopiness,
    change_loop_start,
    classify_loop,
    close_loop,
    reopen_loop,
)
from .move import MoveMode, cap_vector, move_region
from .quick_fix import quick_fix
from .splice import restore_span

__all__ = [
    "BendArc",
    "LoopKind",
    "Loopiness",
    "MoveMode",
    "Operation",
    "OperationSpec",
    "apply_operation",
    "cap_vector",
    "change_loop_start",
    "classify_loop",
    "close_loop",
    "delete_region",
    "fit_bend",
    "get_spec",
    "move_region",
    "quick_fix",
    "register",
    "registered_kinds",
    "reopen_loop",
    "restore_span",
    "smooth_bend",
    "smooth_gradient",
]
