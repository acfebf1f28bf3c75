"""Completion marker kept as an annotation on each handled node."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Final

from .errors import PersistFailure

if TYPE_CHECKING:
    from .types import NodeRecord

SRCDST_CHECK_DISABLED_ANNOTATION: Final[str] = (
    "kubernetes-ec2-srcdst-controller.ottoyiu.com/srcdst-check-disabled"
)
MARKER_VALUE: Final[str] = "true"


def is_handled(node: NodeRecord) -> bool:
    """Return whether ``node`` already carries the marker, whatever its value."""

    if node.annotations is None:
        return False
    return SRCDST_CHECK_DISABLED_ANNOTATION in node.annotations


def mark_handled(node: NodeRecord) -> NodeRecord:
    """Return a copy of ``node`` with the marker set.

    The original record and its annotation mapping are left untouched.
    """

    try:
        annotations: dict[str, str] = dict(node.annotations or {})
        annotations[SRCDST_CHECK_DISABLED_ANNOTATION] = MARKER_VALUE
        return replace(node, annotations=annotations)
    except (TypeError, ValueError) as exc:
        raise PersistFailure(f"Failed to make copy of node {node.name}: {exc}") from exc


__all__ = [
    "MARKER_VALUE",
    "SRCDST_CHECK_DISABLED_ANNOTATION",
    "is_handled",
    "mark_handled",
]
