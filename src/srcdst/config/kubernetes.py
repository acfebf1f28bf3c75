"""Kubernetes API configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_env, optional_int_env
from .errors import ConfigurationError

DEFAULT_RESYNC_SECONDS: Final[int] = 60
DEFAULT_WATCH_TIMEOUT_SECONDS: Final[int] = 300
DEFAULT_REQUEST_TIMEOUT_SECONDS: Final[int] = 30


@dataclass(slots=True, frozen=True)
class KubernetesConfig:
    kubeconfig: str | None = None
    context: str | None = None
    in_cluster: bool = False
    resync_period_seconds: int = DEFAULT_RESYNC_SECONDS
    watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS
    label_selector: str | None = None
    field_selector: str | None = None


def get_kubernetes_config(
    *,
    kubeconfig: str | None = None,
    context: str | None = None,
    resync_period_seconds: int | None = None,
    label_selector: str | None = None,
) -> KubernetesConfig:
    resync = (
        resync_period_seconds
        if resync_period_seconds is not None
        else optional_int_env("SRCDST_RESYNC_SECONDS", DEFAULT_RESYNC_SECONDS)
    )
    if resync < 0:
        raise ConfigurationError("Resync period must be non-negative (0 disables resync)")
    watch_timeout = optional_int_env("SRCDST_WATCH_TIMEOUT_SECONDS", DEFAULT_WATCH_TIMEOUT_SECONDS)
    if watch_timeout <= 0:
        raise ConfigurationError("SRCDST_WATCH_TIMEOUT_SECONDS must be positive")

    effective_kubeconfig = kubeconfig or optional_env("KUBECONFIG")
    return KubernetesConfig(
        kubeconfig=effective_kubeconfig,
        context=context or optional_env("SRCDST_KUBE_CONTEXT"),
        in_cluster=effective_kubeconfig is None
        and optional_env("KUBERNETES_SERVICE_HOST") is not None,
        resync_period_seconds=resync,
        watch_timeout_seconds=watch_timeout,
        request_timeout_seconds=optional_int_env(
            "SRCDST_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
        label_selector=label_selector or optional_env("SRCDST_NODE_LABEL_SELECTOR"),
        field_selector=optional_env("SRCDST_NODE_FIELD_SELECTOR"),
    )
