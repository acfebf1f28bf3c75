"""Node inventory backed by the Kubernetes API server.

``NodeInformer`` keeps a local cache of nodes fed by list + watch, the same way
client-go informers do: an initial list delivers every node as added, the
watch delivers additions and modifications, and a periodic resync re-delivers
every cached node as an update so handlers get another chance at nodes whose
previous attempt failed.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes import watch as k8s_watch
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from srcdst.config.kubernetes import KubernetesConfig
from srcdst.domain.errors import PersistFailure

from .translator import decode_node

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from srcdst.domain.types import NodeRecord

log = getLogger(__name__)

_HTTP_NOT_FOUND = 404
_HTTP_GONE = 410
_ERROR_BACKOFF_SECONDS = 5.0


class WatchExpiredError(Exception):
    """The watch resource version is too old; the informer must relist."""


def load_kube_client(config: KubernetesConfig) -> k8s_client.CoreV1Api:
    """Build a CoreV1 API client from in-cluster credentials or a kubeconfig."""

    if config.in_cluster:
        log.info("Using in-cluster Kubernetes configuration")
        k8s_config.load_incluster_config()
    else:
        log.info(
            "Using kubeconfig %s (context: %s)",
            config.kubeconfig or "~/.kube/config",
            config.context or "current",
        )
        k8s_config.load_kube_config(config_file=config.kubeconfig, context=config.context)
    return k8s_client.CoreV1Api()


def _resource_version(raw_object: object) -> str | None:
    if not isinstance(raw_object, dict):
        return None
    metadata = raw_object.get("metadata")
    if not isinstance(metadata, dict):
        return None
    value = metadata.get("resourceVersion")
    return value if isinstance(value, str) else None


def _node_name(obj: Any) -> str | None:
    metadata = getattr(obj, "metadata", None)
    return getattr(metadata, "name", None)


@dataclass(slots=True)
class NodeInformer:
    """List/watch loop over cluster nodes. Not thread-safe; run it on one thread."""

    core_api: k8s_client.CoreV1Api
    config: KubernetesConfig
    on_add: Callable[[object], None]
    on_update: Callable[[object, object], None]
    watch_factory: Callable[[], k8s_watch.Watch] = k8s_watch.Watch
    monotonic: Callable[[], float] = time.monotonic
    cache: dict[str, object] = field(default_factory=dict)
    resource_version: str | None = None
    _next_resync: float | None = field(default=None, init=False)
    _watch: k8s_watch.Watch | None = field(default=None, init=False)

    def _selectors(self) -> dict[str, str]:
        selectors: dict[str, str] = {}
        if self.config.label_selector:
            selectors["label_selector"] = self.config.label_selector
        if self.config.field_selector:
            selectors["field_selector"] = self.config.field_selector
        return selectors

    def relist(self) -> None:
        """List all nodes, deliver them and reset the watch position."""

        node_list = self.core_api.list_node(
            _request_timeout=self.config.request_timeout_seconds,
            **self._selectors(),
        )
        seen: set[str] = set()
        for item in node_list.items or ():
            name = _node_name(item)
            if name is None:
                self._deliver_add(item)
                continue
            seen.add(name)
            previous = self.cache.get(name)
            self.cache[name] = item
            if previous is None:
                self._deliver_add(item)
            else:
                self._deliver_update(previous, item)
        for name in set(self.cache) - seen:
            del self.cache[name]

        self.resource_version = node_list.metadata.resource_version
        self._schedule_resync()
        log.debug("Listed %d nodes at resource version %s", len(seen), self.resource_version)

    def stream(self) -> None:
        """Consume one watch window, returning when it times out or is stopped."""

        timeout = self.config.watch_timeout_seconds
        if self.config.resync_period_seconds > 0:
            timeout = min(timeout, self.config.resync_period_seconds)

        self._watch = self.watch_factory()
        events: Iterator[dict[str, Any]] = self._watch.stream(
            self.core_api.list_node,
            resource_version=self.resource_version,
            timeout_seconds=timeout,
            allow_watch_bookmarks=True,
            **self._selectors(),
        )
        try:
            for event in events:
                self._handle_event(event)
                self.maybe_resync()
        except ApiException as exc:
            if exc.status == _HTTP_GONE:
                raise WatchExpiredError(str(exc)) from exc
            raise
        finally:
            self._watch = None

    def stop_stream(self) -> None:
        active = self._watch
        if active is not None:
            active.stop()

    def maybe_resync(self) -> None:
        if self._next_resync is None or self.monotonic() < self._next_resync:
            return
        self.resync()

    def resync(self) -> None:
        """Re-deliver every cached node as an update."""

        log.debug("Resyncing %d cached nodes", len(self.cache))
        for node in list(self.cache.values()):
            self._deliver_update(node, node)
        self._schedule_resync()

    def _schedule_resync(self) -> None:
        period = self.config.resync_period_seconds
        self._next_resync = self.monotonic() + period if period > 0 else None

    def _handle_event(self, event: object) -> None:
        if not isinstance(event, dict):
            log.error("Dropping malformed node watch event: %r", event)
            return

        event_type = event.get("type")
        obj = event.get("object")
        raw = event.get("raw_object")

        if event_type == "ERROR":
            code = raw.get("code") if isinstance(raw, dict) else None
            if code == _HTTP_GONE:
                raise WatchExpiredError(f"Watch expired: {raw}")
            log.warning("Node watch reported an error: %s", raw)
            return

        version = _resource_version(raw)
        if version is not None:
            self.resource_version = version

        if event_type == "BOOKMARK":
            return

        name = _node_name(obj)
        if event_type == "DELETED":
            if name is not None:
                self.cache.pop(name, None)
            return

        if event_type == "ADDED":
            if name is not None:
                self.cache[name] = obj
            self._deliver_add(obj)
        elif event_type == "MODIFIED":
            previous = self.cache.get(name) if name is not None else None
            if name is not None:
                self.cache[name] = obj
            self._deliver_update(previous if previous is not None else obj, obj)
        else:
            log.warning("Ignoring node watch event of unknown type %r", event_type)

    def _deliver_add(self, obj: object) -> None:
        try:
            self.on_add(obj)
        except Exception:
            log.exception("Node add handler failed")

    def _deliver_update(self, old: object, new: object) -> None:
        try:
            self.on_update(old, new)
        except Exception:
            log.exception("Node update handler failed")


class InformerSubscription:
    """Runs a ``NodeInformer`` on a daemon thread until stopped."""

    def __init__(
        self,
        informer: NodeInformer,
        *,
        error_backoff_seconds: float = _ERROR_BACKOFF_SECONDS,
    ) -> None:
        self._informer = informer
        self._error_backoff_seconds = error_backoff_seconds
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="node-informer", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stopped.set()
        self._informer.stop_stream()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        needs_list = True
        while not self._stopped.is_set():
            try:
                if needs_list:
                    self._informer.relist()
                    needs_list = False
                self._informer.stream()
                self._informer.maybe_resync()
            except WatchExpiredError:
                log.info("Node watch expired; relisting")
                needs_list = True
            except (ApiException, Urllib3HTTPError, OSError) as exc:
                log.warning(
                    "Node watch failed (%s); retrying in %.0fs",
                    exc,
                    self._error_backoff_seconds,
                )
                needs_list = True
                self._stopped.wait(self._error_backoff_seconds)
            except Exception:
                log.exception(
                    "Unexpected error in node watch; relisting in %.0fs",
                    self._error_backoff_seconds,
                )
                needs_list = True
                self._stopped.wait(self._error_backoff_seconds)
        log.debug("Node informer thread exiting")


class KubernetesNodeInventory:
    """``NodeInventory`` implementation using the CoreV1 API."""

    def __init__(
        self,
        core_api: k8s_client.CoreV1Api,
        config: KubernetesConfig | None = None,
        *,
        watch_factory: Callable[[], k8s_watch.Watch] = k8s_watch.Watch,
    ) -> None:
        self._core_api = core_api
        self._config = config or KubernetesConfig()
        self._watch_factory = watch_factory

    def watch(
        self,
        on_add: Callable[[object], None],
        on_update: Callable[[object, object], None],
    ) -> InformerSubscription:
        informer = NodeInformer(
            core_api=self._core_api,
            config=self._config,
            on_add=on_add,
            on_update=on_update,
            watch_factory=self._watch_factory,
        )
        subscription = InformerSubscription(informer)
        subscription.start()
        return subscription

    def get(self, name: str) -> NodeRecord | None:
        try:
            node = self._core_api.read_node(
                name, _request_timeout=self._config.request_timeout_seconds
            )
        except ApiException as exc:
            if exc.status == _HTTP_NOT_FOUND:
                return None
            raise
        return decode_node(node)

    def update(self, node: NodeRecord) -> NodeRecord:
        """Replace the node's annotations with ``node.annotations``.

        The write is pinned to ``node.resource_version``, so the API server answers
        409 Conflict if the node changed after the snapshot. A record without a
        resource version is refused rather than written blindly.
        """

        if node.resource_version is None:
            raise PersistFailure(
                f"Refusing to update node {node.name} without a resource version"
            )
        live = self._core_api.read_node(
            node.name, _request_timeout=self._config.request_timeout_seconds
        )
        live.metadata.annotations = dict(node.annotations or {})
        live.metadata.resource_version = node.resource_version
        stored = self._core_api.replace_node(
            node.name,
            live,
            _request_timeout=self._config.request_timeout_seconds,
        )
        return decode_node(stored)


__all__ = [
    "InformerSubscription",
    "KubernetesNodeInventory",
    "NodeInformer",
    "WatchExpiredError",
    "load_kube_client",
]
