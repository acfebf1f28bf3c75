"""Map Kubernetes node provider IDs to EC2 instance IDs.

Kubernetes records the backing cloud resource of a node in ``spec.providerID``.
On AWS the value looks like ``aws:///us-west-2a/i-0123456789abcdef0``: a scheme,
an availability zone and the instance ID. Most clusters emit the triple-slash
form; it is collapsed to ``aws://us-west-2a/i-...`` before parsing, so the zone
is read as the host in both forms.

Beyond URL structure (a path after the host, a numeric port if any), only the
scheme and the ``i-`` prefix are checked. EC2 has used both 8 and 17
hex-digit suffixes, so the length is left alone.
"""

from __future__ import annotations

from typing import Final
from urllib.parse import urlsplit

from .errors import MalformedIdentifierError, UnsupportedProviderError
from .types import InstanceID

AWS_SCHEME: Final[str] = "aws"
INSTANCE_ID_PREFIX: Final[str] = "i-"


def resolve_instance_id(provider_id: str) -> InstanceID:
    """Return the EC2 instance ID encoded in ``provider_id``.

    Raises ``UnsupportedProviderError`` when the ID does not belong to AWS and
    ``MalformedIdentifierError`` when it cannot be parsed or does not end in a
    single ``i-`` segment.
    """

    if not provider_id.startswith(AWS_SCHEME):
        raise UnsupportedProviderError(
            f"Node is not in AWS EC2 (provider ID {provider_id!r})",
            provider_id=provider_id,
        )

    normalized = provider_id.replace("///", "//", 1)
    try:
        parsed = urlsplit(normalized)
        parsed.port  # noqa: B018
    except ValueError as exc:
        raise MalformedIdentifierError(
            f"Invalid provider ID {provider_id!r}: {exc}",
            provider_id=provider_id,
        ) from exc

    if not parsed.path.startswith("/"):
        raise MalformedIdentifierError(
            f"Invalid provider ID {provider_id!r}: no path after the scheme",
            provider_id=provider_id,
        )

    instance_id = parsed.path.strip("/")
    if "/" in instance_id or not instance_id.startswith(INSTANCE_ID_PREFIX):
        raise MalformedIdentifierError(
            f"Invalid format for AWS instance ID {instance_id!r}",
            provider_id=provider_id,
        )

    return InstanceID(instance_id)


__all__ = ["AWS_SCHEME", "INSTANCE_ID_PREFIX", "resolve_instance_id"]
