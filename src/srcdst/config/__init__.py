"""Application configuration helpers."""

from __future__ import annotations

from .aws import AwsConfig, AwsRetryConfig, get_aws_config
from .controller import get_marker_retry_policy
from .env import optional_env, optional_int_env
from .errors import ConfigurationError, MissingConfigurationError
from .kubernetes import KubernetesConfig, get_kubernetes_config
from .logging import configure_logging

__all__ = [
    "AwsConfig",
    "AwsRetryConfig",
    "ConfigurationError",
    "KubernetesConfig",
    "MissingConfigurationError",
    "configure_logging",
    "get_aws_config",
    "get_kubernetes_config",
    "get_marker_retry_policy",
    "optional_env",
    "optional_int_env",
]
