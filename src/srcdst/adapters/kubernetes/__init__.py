"""Public interface for the Kubernetes node inventory adapter."""

from __future__ import annotations

from .client import (
    InformerSubscription,
    KubernetesNodeInventory,
    NodeInformer,
    WatchExpiredError,
    load_kube_client,
)
from .schema import NodeMetadata, NodePayload, NodeSpec
from .translator import decode_node, parse_node_payload

__all__ = [
    "InformerSubscription",
    "KubernetesNodeInventory",
    "NodeInformer",
    "NodeMetadata",
    "NodePayload",
    "NodeSpec",
    "WatchExpiredError",
    "decode_node",
    "load_kube_client",
    "parse_node_payload",
]
