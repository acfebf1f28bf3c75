"""Translate Kubernetes API objects into domain node records."""

from __future__ import annotations

from collections.abc import Mapping
from functools import cache
from typing import cast

from kubernetes.client import ApiClient, V1Node
from pydantic import ValidationError

from srcdst.domain.errors import UnexpectedPayloadError
from srcdst.domain.types import NodeRecord

from .schema import NodePayload


@cache
def _serializer() -> ApiClient:
    return ApiClient()


def node_to_dict(obj: V1Node) -> dict[str, object]:
    """Serialize a client model to the camelCase wire representation."""

    return cast(dict[str, object], _serializer().sanitize_for_serialization(obj))


def parse_node_payload(obj: object) -> NodePayload:
    if isinstance(obj, V1Node):
        data: object = node_to_dict(obj)
    elif isinstance(obj, Mapping):
        data = obj
    else:
        raise UnexpectedPayloadError(
            f"Unsupported payload type {type(obj).__name__}",
            payload=obj,
        )

    try:
        return NodePayload.model_validate(data)
    except ValidationError as exc:
        raise UnexpectedPayloadError(f"Invalid node payload: {exc}", payload=obj) from exc


def decode_node(obj: object) -> NodeRecord:
    """Return the ``NodeRecord`` for a watch payload or raise ``UnexpectedPayloadError``."""

    payload = parse_node_payload(obj)
    return NodeRecord(
        name=payload.metadata.name,
        provider_id=payload.spec.provider_id,
        annotations=payload.metadata.annotations,
        resource_version=payload.metadata.resource_version,
    )
