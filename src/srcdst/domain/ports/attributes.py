"""Port for the cloud control plane call that disables source/destination checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from srcdst.domain.types import InstanceID


@runtime_checkable
class SourceDestCheckClient(Protocol):
    def disable_source_dest_check(self, instance_id: InstanceID) -> None:
        """Disable the check on ``instance_id``; idempotent at the provider."""
        ...


__all__ = ["SourceDestCheckClient"]
