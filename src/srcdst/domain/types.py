"""Value types shared by the reconciliation core."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, NewType

if TYPE_CHECKING:
    from .errors import ReconciliationError

InstanceID = NewType("InstanceID", str)


def _freeze(annotations: Mapping[str, str] | None) -> Mapping[str, str] | None:
    if annotations is None:
        return None
    return MappingProxyType(dict(annotations))


@dataclass(frozen=True, slots=True)
class NodeRecord:
    """Snapshot of a cluster node as seen by the inventory.

    Instances are never modified; derive a replacement with
    ``dataclasses.replace`` instead. ``annotations`` is ``None`` when the node
    carries no annotation mapping at all.
    """

    name: str
    provider_id: str = ""
    annotations: Mapping[str, str] | None = field(default=None)
    resource_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "annotations", _freeze(self.annotations))


class TriggerKind(StrEnum):
    ADDED = "added"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class ReconciliationEvent:
    node: NodeRecord
    trigger: TriggerKind


class ReconcileOutcome(StrEnum):
    SKIPPED = "skipped"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(slots=True)
class ReconcileResult:
    """Outcome of one reconciliation attempt for one node."""

    node_name: str
    outcome: ReconcileOutcome
    instance_id: InstanceID | None = None
    error: ReconciliationError | None = None
    persist_attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome is not ReconcileOutcome.ABORTED


__all__ = [
    "InstanceID",
    "NodeRecord",
    "ReconcileOutcome",
    "ReconcileResult",
    "ReconciliationEvent",
    "TriggerKind",
]
