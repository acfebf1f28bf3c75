"""Reconciliation core: keep EC2 source/destination checks disabled on cluster nodes."""

from __future__ import annotations

from .dispatcher import WatchDispatcher
from .errors import (
    AttributeCallError,
    MalformedIdentifierError,
    PersistFailure,
    ProviderIdError,
    ReconciliationError,
    UnexpectedPayloadError,
    UnsupportedProviderError,
)
from .marker import SRCDST_CHECK_DISABLED_ANNOTATION, is_handled, mark_handled
from .provider_id import resolve_instance_id
from .reconciler import MarkerRetryPolicy, Reconciler
from .types import (
    InstanceID,
    NodeRecord,
    ReconcileOutcome,
    ReconcileResult,
    ReconciliationEvent,
    TriggerKind,
)

__all__ = [
    "SRCDST_CHECK_DISABLED_ANNOTATION",
    "AttributeCallError",
    "InstanceID",
    "MalformedIdentifierError",
    "MarkerRetryPolicy",
    "NodeRecord",
    "PersistFailure",
    "ProviderIdError",
    "ReconcileOutcome",
    "ReconcileResult",
    "ReconciliationError",
    "ReconciliationEvent",
    "Reconciler",
    "TriggerKind",
    "UnexpectedPayloadError",
    "UnsupportedProviderError",
    "WatchDispatcher",
    "is_handled",
    "mark_handled",
    "resolve_instance_id",
]
