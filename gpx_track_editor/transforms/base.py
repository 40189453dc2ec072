"""Operation descriptors and the registry mapping each kind to its transform."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TYPE_CHECKING

from ..models import EditResult

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import MarkerPair, Track

TransformFn = Callable[..., Optional[EditResult]]
CursorFn = Callable[["Track", EditResult], "MarkerPair"]


@dataclass(frozen=True, slots=True)
class Operation:
    """An introspectable, serialisable request to run a transform.

    ``params`` is stored as sorted ``(name, value)`` pairs so operations are
    hashable and compare by value.
    """

    kind: str
    params: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def create(cls, kind: str, **params: Any) -> "Operation":
        return cls(kind, tuple(sorted((k, _freeze(v)) for k, v in params.items())))

    @property
    def arguments(self) -> Dict[str, Any]:
        return dict(self.params)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "params": {k: _thaw(v) for k, v in self.params}}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Operation":
        kind = payload.get("kind")
        if not isinstance(kind, str) or not kind:
            raise ValueError("Operation payload needs a 'kind'")
        params = payload.get("params") or {}
        if not isinstance(params, Mapping):
            raise ValueError("Operation 'params' must be a mapping")
        return cls.create(kind, **params)


@dataclass(frozen=True, slots=True)
class OperationSpec:
    kind: str
    label: str
    apply: TransformFn
    cursor: Optional[CursorFn] = None


_REGISTRY: Dict[str, OperationSpec] = {}


def register(
    kind: str, label: str, *, cursor: Optional[CursorFn] = None
) -> Callable[[TransformFn], TransformFn]:
    """Register a transform under ``kind`` with a label for the undo menu."""

    def decorator(func: TransformFn) -> TransformFn:
        if kind in _REGISTRY:
            raise ValueError(f"Operation kind already registered: {kind}")
        _REGISTRY[kind] = OperationSpec(kind=kind, label=label, apply=func, cursor=cursor)
        return func

    return decorator


def get_spec(kind: str) -> OperationSpec:
    try:
        return _REGISTRY[kind]
    except KeyError as exc:
        raise ValueError(f"Unknown operation kind: {kind}") from exc


def registered_kinds() -> Tuple[str, ...]:
    return tuple(sorted(_REGISTRY))


def apply_operation(track: "Track", operation: Operation) -> Optional[EditResult]:
    """Run the transform for ``operation`` on ``track`` without committing it."""

    spec = get_spec(operation.kind)
    return spec.apply(track, **operation.arguments)


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


__all__ = [
    "CursorFn",
    "Operation",
    "OperationSpec",
    "TransformFn",
    "apply_operation",
    "get_spec",
    "register",
    "registered_kinds",
]
