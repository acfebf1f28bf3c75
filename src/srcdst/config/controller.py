"""Reconciler tuning values."""

from __future__ import annotations

from srcdst.domain.reconciler import MarkerRetryPolicy

from .env import optional_env, optional_int_env
from .errors import ConfigurationError


def _optional_float_env(name: str, default: float) -> float:
    value = optional_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


def get_marker_retry_policy() -> MarkerRetryPolicy:
    defaults = MarkerRetryPolicy()
    try:
        return MarkerRetryPolicy(
            total=optional_int_env("SRCDST_MARKER_RETRIES", defaults.total),
            backoff_factor=_optional_float_env(
                "SRCDST_MARKER_BACKOFF_FACTOR", defaults.backoff_factor
            ),
            max_backoff_wait=_optional_float_env(
                "SRCDST_MARKER_MAX_BACKOFF", defaults.max_backoff_wait
            ),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
