"""Domain port definitions for adapters."""

from __future__ import annotations

from .attributes import SourceDestCheckClient
from .inventory import NodeInventory, Subscription

__all__ = ["NodeInventory", "SourceDestCheckClient", "Subscription"]
