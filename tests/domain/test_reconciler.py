from __future__ import annotations

import logging

import pytest

from srcdst.domain.errors import (
    AttributeCallError,
    MalformedIdentifierError,
    PersistFailure,
    UnsupportedProviderError,
)
from srcdst.domain.marker import SRCDST_CHECK_DISABLED_ANNOTATION, is_handled
from srcdst.domain.reconciler import MarkerRetryPolicy, Reconciler
from srcdst.domain.types import ReconcileOutcome, ReconciliationEvent, TriggerKind
from tests.helpers.nodes import FakeAttributeClient, FakeInventory, make_node, no_sleep


def _reconciler(
    inventory: FakeInventory,
    attributes: FakeAttributeClient,
    *,
    total: int = 3,
    sleeps: list[float] | None = None,
) -> Reconciler:
    return Reconciler(
        inventory=inventory,
        attributes=attributes,
        retry=MarkerRetryPolicy(total=total),
        sleep=sleeps.append if sleeps is not None else no_sleep,
    )


def test_unmarked_node_is_disabled_and_marked() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient()

    result = _reconciler(inventory, attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert result.ok
    assert result.instance_id == "i-abcdefgh"
    assert result.persist_attempts == 1
    assert attributes.calls == ["i-abcdefgh"]
    assert len(inventory.updates) == 1
    assert is_handled(inventory.nodes[node.name])
    assert not is_handled(node)


def test_marked_node_is_skipped_every_time() -> None:
    node = make_node(annotations={SRCDST_CHECK_DISABLED_ANNOTATION: "true"})
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient()
    reconciler = _reconciler(inventory, attributes)

    first = reconciler.reconcile(node)
    second = reconciler.reconcile(node)

    assert first.outcome is ReconcileOutcome.SKIPPED
    assert second.outcome is ReconcileOutcome.SKIPPED
    assert attributes.calls == []
    assert inventory.updates == []


def test_second_pass_on_stored_node_makes_no_call() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient()
    reconciler = _reconciler(inventory, attributes)

    reconciler.reconcile(node)
    stored = inventory.get(node.name)
    assert stored is not None
    again = reconciler.reconcile(stored)

    assert again.outcome is ReconcileOutcome.SKIPPED
    assert len(attributes.calls) == 1
    assert len(inventory.updates) == 1


def test_exactly_one_call_regardless_of_annotation_count() -> None:
    annotations = {f"example.com/key-{index}": str(index) for index in range(25)}
    node = make_node(annotations=annotations)
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient()

    _reconciler(inventory, attributes).reconcile(node)

    assert len(attributes.calls) == 1
    stored = inventory.nodes[node.name].annotations or {}
    assert all(stored[key] == value for key, value in annotations.items())


@pytest.mark.parametrize(
    ("provider_id", "error_type"),
    [
        ("gce://us-west-1a/test", UnsupportedProviderError),
        ("", UnsupportedProviderError),
        ("aws:///us-west-2a/not-an-instance", MalformedIdentifierError),
    ],
)
def test_unresolvable_provider_id_aborts_without_side_effects(
    provider_id: str,
    error_type: type[Exception],
    caplog: pytest.LogCaptureFixture,
) -> None:
    node = make_node("broken-node", provider_id=provider_id)
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient()

    with caplog.at_level(logging.ERROR):
        result = _reconciler(inventory, attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.ABORTED
    assert not result.ok
    assert isinstance(result.error, error_type)
    assert attributes.calls == []
    assert inventory.updates == []
    assert "broken-node" in caplog.text


def test_attribute_failure_aborts_without_marking() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient(
        error=AttributeCallError("UnauthorizedOperation", instance_id="i-abcdefgh")
    )

    result = _reconciler(inventory, attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.ABORTED
    assert isinstance(result.error, AttributeCallError)
    assert result.instance_id == "i-abcdefgh"
    assert inventory.updates == []
    assert not is_handled(inventory.nodes[node.name])


def test_unexpected_attribute_exception_is_classified() -> None:
    node = make_node()
    attributes = FakeAttributeClient(error=ConnectionResetError("reset by peer"))

    result = _reconciler(FakeInventory(node), attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.ABORTED
    assert isinstance(result.error, AttributeCallError)
    assert isinstance(result.error.__cause__, ConnectionResetError)


def test_marker_write_is_retried_with_backoff() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    inventory.update_errors.append(TimeoutError("apiserver timeout"))
    attributes = FakeAttributeClient()
    sleeps: list[float] = []

    result = _reconciler(inventory, attributes, sleeps=sleeps).reconcile(node)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert result.persist_attempts == 2
    assert sleeps == [0.5]
    assert len(attributes.calls) == 1
    assert is_handled(inventory.nodes[node.name])


def test_conflicting_write_is_retried_on_fresh_snapshot() -> None:
    node = make_node(annotations={"team": "infra"})
    inventory = FakeInventory(node)
    inventory.touch(node.name, annotations={"team": "infra", "owner": "someone-else"})
    attributes = FakeAttributeClient()

    result = _reconciler(inventory, attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert result.persist_attempts == 2
    stored = inventory.nodes[node.name].annotations or {}
    assert stored["owner"] == "someone-else"
    assert SRCDST_CHECK_DISABLED_ANNOTATION in stored
    assert len(attributes.calls) == 1


def test_refused_write_is_retried_on_fresh_snapshot() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    inventory.update_errors.append(PersistFailure("no resource version"))
    attributes = FakeAttributeClient()

    result = _reconciler(inventory, attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert result.persist_attempts == 2
    assert is_handled(inventory.nodes[node.name])


def test_marker_write_gives_up_after_budget() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    inventory.update_errors.extend(RuntimeError("boom") for _ in range(3))
    attributes = FakeAttributeClient()
    sleeps: list[float] = []

    result = _reconciler(inventory, attributes, total=3, sleeps=sleeps).reconcile(node)

    assert result.outcome is ReconcileOutcome.ABORTED
    assert isinstance(result.error, PersistFailure)
    assert result.persist_attempts == 3
    assert sleeps == [0.5, 1.0]
    assert len(attributes.calls) == 1
    assert not is_handled(inventory.nodes[node.name])


def test_marker_set_concurrently_completes_without_writing_again() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    inventory.update_errors.append(RuntimeError("conflict"))
    inventory.touch(node.name, annotations={SRCDST_CHECK_DISABLED_ANNOTATION: "true"})
    attributes = FakeAttributeClient()

    result = _reconciler(inventory, attributes).reconcile(node)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert len(inventory.updates) == 1


def test_node_deleted_during_retry_aborts() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    inventory.update_errors.append(RuntimeError("conflict"))
    attributes = FakeAttributeClient()
    reconciler = _reconciler(inventory, attributes)
    reconciler.sleep = lambda _seconds: inventory.nodes.pop(node.name, None)  # type: ignore[assignment]

    result = reconciler.reconcile(node)

    assert result.outcome is ReconcileOutcome.ABORTED
    assert isinstance(result.error, PersistFailure)
    assert result.persist_attempts == 1


def test_failed_reread_counts_as_attempt() -> None:
    node = make_node()
    inventory = FakeInventory(node)
    inventory.update_errors.append(RuntimeError("conflict"))
    inventory.get_errors.append(OSError("connection refused"))
    attributes = FakeAttributeClient()

    result = _reconciler(inventory, attributes, total=3).reconcile(node)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert result.persist_attempts == 3


@pytest.mark.parametrize("trigger", [TriggerKind.ADDED, TriggerKind.UPDATED])
def test_handle_treats_added_and_updated_alike(trigger: TriggerKind) -> None:
    node = make_node()
    inventory = FakeInventory(node)
    attributes = FakeAttributeClient()

    result = _reconciler(inventory, attributes).handle(
        ReconciliationEvent(node=node, trigger=trigger)
    )

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert attributes.calls == ["i-abcdefgh"]


def test_retry_policy_backoff_is_capped() -> None:
    policy = MarkerRetryPolicy(total=6, backoff_factor=1.0, max_backoff_wait=3.0)

    assert [policy.backoff(n) for n in range(1, 5)] == [1.0, 2.0, 3.0, 3.0]


def test_retry_policy_requires_one_attempt() -> None:
    with pytest.raises(ValueError, match="at least 1"):
        MarkerRetryPolicy(total=0)
