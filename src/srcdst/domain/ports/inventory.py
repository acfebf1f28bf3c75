"""Ports for the cluster node inventory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from srcdst.domain.types import NodeRecord


@runtime_checkable
class Subscription(Protocol):
    """Handle for an active watch; ``stop`` ends event delivery."""

    @property
    def alive(self) -> bool:
        """Whether events are still being delivered."""
        ...

    def stop(self) -> None:
        ...


@runtime_checkable
class NodeInventory(Protocol):
    """Source of node snapshots and sink for node replacements."""

    def watch(
        self,
        on_add: Callable[[object], None],
        on_update: Callable[[object, object], None],
    ) -> Subscription:
        """Start delivering raw node payloads to the given callbacks."""
        ...

    def get(self, name: str) -> NodeRecord | None:
        """Return the current snapshot of node ``name`` or ``None`` if it is gone."""
        ...

    def update(self, node: NodeRecord) -> NodeRecord:
        """Replace the stored node with ``node`` and return the stored result.

        Stale writes (the node changed since ``node`` was read) must raise.
        """
        ...


__all__ = ["NodeInventory", "Subscription"]
