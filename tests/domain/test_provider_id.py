from __future__ import annotations

import pytest

from srcdst.domain.errors import (
    MalformedIdentifierError,
    ProviderIdError,
    UnsupportedProviderError,
)
from srcdst.domain.provider_id import resolve_instance_id


@pytest.mark.parametrize(
    ("provider_id", "expected"),
    [
        ("aws:///us-west-2a/i-09fc5a0ae524b0333", "i-09fc5a0ae524b0333"),
        ("aws://us-west-2a/i-a123hd52", "i-a123hd52"),
        ("aws:///eu-central-1b/i-0123456789abcdef0/", "i-0123456789abcdef0"),
    ],
)
def test_resolve_instance_id_returns_trailing_segment(provider_id: str, expected: str) -> None:
    assert resolve_instance_id(provider_id) == expected


@pytest.mark.parametrize(
    "provider_id",
    ["gce://us-west-1a/test", "this_will_fail", "i-a123hd52", "", "azure:///zone/i-abc"],
)
def test_resolve_instance_id_rejects_other_providers(provider_id: str) -> None:
    with pytest.raises(UnsupportedProviderError) as excinfo:
        resolve_instance_id(provider_id)

    assert excinfo.value.provider_id == provider_id


@pytest.mark.parametrize(
    "provider_id",
    [
        "aws:///us-west-2a/vol-0123456789",
        "aws:///us-west-2a/extra/i-0123456789",
        "aws:///i-0123456789",
        "aws:///us-west-2a/",
        "aws:///[us-west-2a/i-0123456789",
        "aws:i-abc12345",
        "aws://us-west-2a:notaport/i-abc12345",
    ],
)
def test_resolve_instance_id_rejects_malformed_ids(provider_id: str) -> None:
    with pytest.raises(MalformedIdentifierError):
        resolve_instance_id(provider_id)


def test_resolve_instance_id_is_deterministic() -> None:
    assert resolve_instance_id("aws:///us-west-2a/i-a1") == resolve_instance_id(
        "aws:///us-west-2a/i-a1"
    )

    errors: list[type[ProviderIdError]] = []
    for _ in range(2):
        with pytest.raises(ProviderIdError) as excinfo:
            resolve_instance_id("aws:///us-west-2a/nope")
        errors.append(type(excinfo.value))
    assert errors == [MalformedIdentifierError, MalformedIdentifierError]
