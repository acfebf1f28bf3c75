"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from srcdst.adapters.ec2 import Ec2SourceDestCheckClient
from srcdst.adapters.kubernetes import KubernetesNodeInventory, decode_node, load_kube_client
from srcdst.config import (
    get_aws_config,
    get_kubernetes_config,
    get_marker_retry_policy,
)
from srcdst.domain.dispatcher import WatchDispatcher
from srcdst.domain.reconciler import Reconciler
from srcdst.domain.types import ReconcileOutcome, ReconcileResult

if TYPE_CHECKING:
    import threading

    from srcdst.config import AwsConfig, KubernetesConfig
    from srcdst.domain.ports import NodeInventory, SourceDestCheckClient
    from srcdst.domain.reconciler import MarkerRetryPolicy

log = getLogger(__name__)

LIVENESS_INTERVAL_SECONDS = 5.0


class WatchStoppedError(RuntimeError):
    """The node watch ended while the controller was still running."""


@dataclass(slots=True)
class Controller:
    inventory: NodeInventory
    reconciler: Reconciler
    dispatcher: WatchDispatcher


def build_controller(
    *,
    inventory: NodeInventory | None = None,
    attributes: SourceDestCheckClient | None = None,
    kubernetes_config: KubernetesConfig | None = None,
    aws_config: AwsConfig | None = None,
    retry: MarkerRetryPolicy | None = None,
) -> Controller:
    """Wire adapters, reconciler and dispatcher; configuration is read lazily."""

    if inventory is None:
        effective_kube = kubernetes_config or get_kubernetes_config()
        inventory = KubernetesNodeInventory(load_kube_client(effective_kube), effective_kube)
    if attributes is None:
        attributes = Ec2SourceDestCheckClient.from_config(aws_config or get_aws_config())

    reconciler = Reconciler(
        inventory=inventory,
        attributes=attributes,
        retry=retry or get_marker_retry_policy(),
    )
    dispatcher = WatchDispatcher(inventory, reconciler, decode_node)
    return Controller(inventory=inventory, reconciler=reconciler, dispatcher=dispatcher)


def run_controller(
    stop_event: threading.Event,
    *,
    controller: Controller | None = None,
    liveness_interval: float = LIVENESS_INTERVAL_SECONDS,
) -> None:
    """Watch nodes and reconcile them until ``stop_event`` is set.

    Raises ``WatchStoppedError`` if the watch ends on its own, so the process
    exits non-zero instead of idling without a watch.
    """

    effective = controller or build_controller()
    log.info("Starting src/dst check controller")
    with effective.dispatcher as dispatcher:
        while not stop_event.wait(liveness_interval):
            if not dispatcher.alive:
                raise WatchStoppedError("Node watch stopped unexpectedly")
    log.info("Src/dst check controller stopped")


def reconcile_node(name: str, *, controller: Controller | None = None) -> ReconcileResult:
    """Run a single reconciliation attempt for the named node."""

    effective = controller or build_controller()
    node = effective.inventory.get(name)
    if node is None:
        log.error("Node %s not found", name)
        return ReconcileResult(
            node_name=name,
            outcome=ReconcileOutcome.ABORTED,
        )
    result = effective.reconciler.reconcile(node)
    log.info(
        "Reconciled node %s: outcome=%s, instance=%s",
        result.node_name,
        result.outcome,
        result.instance_id,
    )
    return result
