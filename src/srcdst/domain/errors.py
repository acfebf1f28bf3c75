"""Failure kinds raised and handled inside a reconciliation attempt."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for failures that abort a single reconciliation attempt."""


class ProviderIdError(ReconciliationError):
    """Raised when a node provider ID cannot be mapped to an instance ID."""

    def __init__(self, message: str, *, provider_id: str) -> None:
        super().__init__(message)
        self.provider_id = provider_id


class UnsupportedProviderError(ProviderIdError):
    """The provider ID does not carry the AWS scheme."""


class MalformedIdentifierError(ProviderIdError):
    """The provider ID is structurally invalid or names no instance."""


class AttributeCallError(ReconciliationError):
    """The cloud control plane rejected or failed the attribute change."""

    def __init__(self, message: str, *, instance_id: str, code: str | None = None) -> None:
        super().__init__(message)
        self.instance_id = instance_id
        self.code = code


class PersistFailure(ReconciliationError):
    """Recording the completion marker on the node failed."""


class UnexpectedPayloadError(ReconciliationError):
    """The watch delivered something that is not a node."""

    def __init__(self, message: str, *, payload: object = None) -> None:
        super().__init__(message)
        self.payload = payload


__all__ = [
    "AttributeCallError",
    "MalformedIdentifierError",
    "PersistFailure",
    "ProviderIdError",
    "ReconciliationError",
    "UnexpectedPayloadError",
    "UnsupportedProviderError",
]
