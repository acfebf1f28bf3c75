"""AWS configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .env import optional_env, optional_int_env
from .errors import ConfigurationError, MissingConfigurationError

RetryMode = Literal["legacy", "standard", "adaptive"]

EC2_CONNECT_TIMEOUT_SECONDS = 10
EC2_READ_TIMEOUT_SECONDS = 30


@dataclass(slots=True, frozen=True)
class AwsRetryConfig:
    """Retry settings handed to botocore for every EC2 request."""

    mode: RetryMode = "standard"
    max_attempts: int = 5

    def as_botocore(self) -> dict[str, object]:
        return {"mode": self.mode, "max_attempts": self.max_attempts}


@dataclass(slots=True, frozen=True)
class AwsConfig:
    region: str
    retry: AwsRetryConfig = field(default_factory=AwsRetryConfig)
    connect_timeout_seconds: int = EC2_CONNECT_TIMEOUT_SECONDS
    read_timeout_seconds: int = EC2_READ_TIMEOUT_SECONDS
    endpoint_url: str | None = None


def get_aws_config(*, region: str | None = None) -> AwsConfig:
    effective_region = region or optional_env("AWS_REGION", "AWS_DEFAULT_REGION")
    if effective_region is None:
        raise MissingConfigurationError(
            "Missing configuration for: AWS_REGION (or AWS_DEFAULT_REGION)"
        )

    mode = optional_env("SRCDST_AWS_RETRY_MODE") or "standard"
    if mode not in ("legacy", "standard", "adaptive"):
        raise ConfigurationError(f"Unsupported AWS retry mode: {mode}")
    max_attempts = optional_int_env("SRCDST_AWS_MAX_ATTEMPTS", 5)
    if max_attempts < 1:
        raise ConfigurationError("SRCDST_AWS_MAX_ATTEMPTS must be at least 1")

    return AwsConfig(
        region=effective_region,
        retry=AwsRetryConfig(mode=mode, max_attempts=max_attempts),  # type: ignore[arg-type]
        endpoint_url=optional_env("SRCDST_EC2_ENDPOINT_URL"),
    )
