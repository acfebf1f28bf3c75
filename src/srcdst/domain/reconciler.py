"""Per-node reconciliation: disable the EC2 source/destination check once.

One attempt walks a fixed sequence::

    CheckMarker -> ResolveIdentifier -> ApplyAttribute -> PersistMarker

A node that already carries the completion marker is skipped without touching
EC2 or the inventory. Any failure aborts the attempt; the next watch event for
the node (an update or the periodic resync) starts a fresh one. Only the marker
write is retried locally, because by then the attribute is already disabled
and repeating the EC2 call would gain nothing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import (
    AttributeCallError,
    PersistFailure,
    ProviderIdError,
    ReconciliationError,
)
from .marker import SRCDST_CHECK_DISABLED_ANNOTATION, is_handled, mark_handled
from .provider_id import resolve_instance_id
from .types import ReconcileOutcome, ReconcileResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from .ports import NodeInventory, SourceDestCheckClient
    from .types import InstanceID, NodeRecord, ReconciliationEvent

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MarkerRetryPolicy:
    """Bounded retry for the marker write after a successful EC2 call."""

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 10.0

    def __post_init__(self) -> None:
        if self.total < 1:
            raise ValueError("MarkerRetryPolicy.total must be at least 1")
        if self.backoff_factor < 0 or self.max_backoff_wait < 0:
            raise ValueError("MarkerRetryPolicy backoff values must be non-negative")

    def backoff(self, retry_number: int) -> float:
        """Seconds to wait before retry ``retry_number`` (1-based)."""

        return min(self.max_backoff_wait, self.backoff_factor * (2 ** (retry_number - 1)))


@dataclass(slots=True)
class Reconciler:
    inventory: NodeInventory
    attributes: SourceDestCheckClient
    retry: MarkerRetryPolicy = field(default_factory=MarkerRetryPolicy)
    sleep: Callable[[float], None] = time.sleep

    def handle(self, event: ReconciliationEvent) -> ReconcileResult:
        """Reconcile the node carried by ``event``; added and updated are treated alike."""

        log.debug("Received %s event for node %s", event.trigger, event.node.name)
        return self.reconcile(event.node)

    def reconcile(self, node: NodeRecord) -> ReconcileResult:
        """Run one attempt for ``node``. Never raises for reconciliation failures."""

        if is_handled(node):
            log.debug(
                "Skipping node %s because it already has the %s annotation",
                node.name,
                SRCDST_CHECK_DISABLED_ANNOTATION,
            )
            return ReconcileResult(node_name=node.name, outcome=ReconcileOutcome.SKIPPED)

        try:
            instance_id = resolve_instance_id(node.provider_id)
        except ProviderIdError as exc:
            log.error(
                "Failed to retrieve instance ID for node %s from provider ID %r: %s",
                node.name,
                exc.provider_id,
                exc,
            )
            return _aborted(node, exc)

        try:
            self._apply(instance_id)
        except AttributeCallError as exc:
            log.error(
                "Failed to disable src/dst check for node %s (EC2 instance %s): %s",
                node.name,
                instance_id,
                exc,
            )
            return _aborted(node, exc, instance_id=instance_id)

        return self._persist_marker(node, instance_id)

    def _apply(self, instance_id: InstanceID) -> None:
        try:
            self.attributes.disable_source_dest_check(instance_id)
        except AttributeCallError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise AttributeCallError(str(exc), instance_id=instance_id) from exc

    def _persist_marker(self, node: NodeRecord, instance_id: InstanceID) -> ReconcileResult:
        attempts = 0
        current = node
        last_error: ReconciliationError | None = None

        while attempts < self.retry.total:
            if attempts:
                delay = self.retry.backoff(attempts)
                log.warning(
                    "Retrying %s annotation on node %s in %.1fs (attempt %d of %d)",
                    SRCDST_CHECK_DISABLED_ANNOTATION,
                    node.name,
                    delay,
                    attempts + 1,
                    self.retry.total,
                )
                self.sleep(delay)
                try:
                    fresh = self.inventory.get(node.name)
                except Exception as exc:  # noqa: BLE001
                    last_error = PersistFailure(f"Failed to re-read node {node.name}: {exc}")
                    last_error.__cause__ = exc
                    attempts += 1
                    continue
                if fresh is None:
                    log.warning("Node %s disappeared before it could be marked", node.name)
                    return _aborted(
                        node,
                        PersistFailure(f"Node {node.name} no longer exists"),
                        instance_id=instance_id,
                        persist_attempts=attempts,
                    )
                current = fresh
                if is_handled(current):
                    log.info("Node %s was marked concurrently; nothing to write", node.name)
                    return ReconcileResult(
                        node_name=node.name,
                        outcome=ReconcileOutcome.COMPLETED,
                        instance_id=instance_id,
                        persist_attempts=attempts,
                    )

            attempts += 1
            try:
                marked = mark_handled(current)
            except PersistFailure as exc:
                log.error("%s", exc)
                return _aborted(node, exc, instance_id=instance_id, persist_attempts=attempts)

            log.info("Marking node %s with %s", node.name, SRCDST_CHECK_DISABLED_ANNOTATION)
            try:
                self.inventory.update(marked)
            except Exception as exc:  # noqa: BLE001
                last_error = PersistFailure(
                    f"Failed to set {SRCDST_CHECK_DISABLED_ANNOTATION} on node {node.name}: {exc}"
                )
                last_error.__cause__ = exc
                log.warning("%s", last_error)
                continue

            return ReconcileResult(
                node_name=node.name,
                outcome=ReconcileOutcome.COMPLETED,
                instance_id=instance_id,
                persist_attempts=attempts,
            )

        log.error(
            "Giving up on %s annotation for node %s after %d attempts; "
            "src/dst check is disabled on %s and will be re-applied on the next event",
            SRCDST_CHECK_DISABLED_ANNOTATION,
            node.name,
            attempts,
            instance_id,
        )
        return _aborted(
            node,
            last_error or PersistFailure(f"Failed to mark node {node.name}"),
            instance_id=instance_id,
            persist_attempts=attempts,
        )


def _aborted(
    node: NodeRecord,
    error: ReconciliationError,
    *,
    instance_id: InstanceID | None = None,
    persist_attempts: int = 0,
) -> ReconcileResult:
    return ReconcileResult(
        node_name=node.name,
        outcome=ReconcileOutcome.ABORTED,
        instance_id=instance_id,
        error=error,
        persist_attempts=persist_attempts,
    )


__all__ = ["MarkerRetryPolicy", "Reconciler"]
