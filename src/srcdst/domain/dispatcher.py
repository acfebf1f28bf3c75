"""Bridge between the inventory watch and the reconciler."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Self

from .errors import UnexpectedPayloadError
from .types import ReconciliationEvent, TriggerKind

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from .ports import NodeInventory, Subscription
    from .reconciler import Reconciler
    from .types import NodeRecord, ReconcileResult

log = getLogger(__name__)


class WatchDispatcher:
    """Owns the node watch subscription and feeds every event to the reconciler.

    Payloads arrive untyped from the inventory. They are decoded into a
    ``NodeRecord`` first; anything that does not decode is logged and dropped.
    Neither decode failures nor reconciler bugs reach the watch thread.
    """

    def __init__(
        self,
        inventory: NodeInventory,
        reconciler: Reconciler,
        decode: Callable[[object], NodeRecord],
    ) -> None:
        self._inventory = inventory
        self._reconciler = reconciler
        self._decode = decode
        self._subscription: Subscription | None = None

    @property
    def running(self) -> bool:
        return self._subscription is not None

    @property
    def alive(self) -> bool:
        """True while started and the underlying subscription still delivers events."""

        return self._subscription is not None and self._subscription.alive

    def start(self) -> None:
        if self._subscription is not None:
            raise RuntimeError("Watch dispatcher is already started")
        log.info("Starting node watch")
        self._subscription = self._inventory.watch(self.on_add, self.on_update)

    def stop(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        log.info("Stopping node watch")
        subscription.stop()

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def on_add(self, obj: object) -> None:
        self.dispatch(obj, TriggerKind.ADDED)

    def on_update(self, _old: object, new: object) -> None:
        self.dispatch(new, TriggerKind.UPDATED)

    def dispatch(self, payload: object, trigger: TriggerKind) -> ReconcileResult | None:
        """Decode ``payload`` and reconcile it; returns ``None`` when the event was dropped."""

        try:
            node = self._decode(payload)
        except UnexpectedPayloadError as exc:
            log.error("Expected Node but handler received: %r (%s)", exc.payload, exc)
            return None

        try:
            return self._reconciler.handle(ReconciliationEvent(node=node, trigger=trigger))
        except Exception:
            log.exception("Unhandled error while reconciling node %s", node.name)
            return None


__all__ = ["WatchDispatcher"]
