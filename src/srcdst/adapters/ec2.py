"""EC2 client that disables the source/destination check on an instance."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from srcdst.domain.errors import AttributeCallError

if TYPE_CHECKING:
    from srcdst.config.aws import AwsConfig
    from srcdst.domain.ports import SourceDestCheckClient
    from srcdst.domain.types import InstanceID

log = getLogger(__name__)


def build_ec2_client(config: AwsConfig) -> Any:
    """Create a boto3 EC2 client with the configured region, retries and timeouts."""

    return boto3.client(
        "ec2",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
        config=Config(
            retries=config.retry.as_botocore(),
            connect_timeout=config.connect_timeout_seconds,
            read_timeout=config.read_timeout_seconds,
        ),
    )


class Ec2SourceDestCheckClient:
    """``SourceDestCheckClient`` backed by ``ModifyInstanceAttribute``."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: AwsConfig) -> Ec2SourceDestCheckClient:
        return cls(build_ec2_client(config))

    def disable_source_dest_check(self, instance_id: InstanceID) -> None:
        log.debug("Disabling src/dst check on EC2 instance %s", instance_id)
        try:
            self._client.modify_instance_attribute(
                InstanceId=instance_id,
                SourceDestCheck={"Value": False},
            )
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = error.get("Code")
            message = error.get("Message") or str(exc)
            raise AttributeCallError(
                f"ModifyInstanceAttribute failed for {instance_id}: {code}: {message}",
                instance_id=instance_id,
                code=code,
            ) from exc
        except BotoCoreError as exc:
            raise AttributeCallError(
                f"ModifyInstanceAttribute failed for {instance_id}: {exc}",
                instance_id=instance_id,
            ) from exc
        log.info("Disabled src/dst check on EC2 instance %s", instance_id)


if TYPE_CHECKING:
    _client_check: SourceDestCheckClient = Ec2SourceDestCheckClient(None)
