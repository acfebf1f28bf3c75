"""Pydantic models describing the parts of a Kubernetes Node the controller reads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KubernetesBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NodeMetadata(KubernetesBaseModel):
    name: str = Field(min_length=1)
    annotations: dict[str, str] | None = None
    resource_version: str | None = Field(default=None, alias="resourceVersion")


class NodeSpec(KubernetesBaseModel):
    provider_id: str = Field(default="", alias="providerID")

    @field_validator("provider_id", mode="before")
    @classmethod
    def _none_to_blank(cls, value: object) -> object:
        return "" if value is None else value


class NodePayload(KubernetesBaseModel):
    kind: str | None = None
    metadata: NodeMetadata
    spec: NodeSpec = Field(default_factory=NodeSpec)

    @field_validator("kind")
    @classmethod
    def _must_be_node(cls, value: str | None) -> str | None:
        if value is not None and value != "Node":
            raise ValueError(f"expected kind Node, got {value}")
        return value

    @field_validator("spec", mode="before")
    @classmethod
    def _none_to_empty_spec(cls, value: object) -> object:
        return {} if value is None else value
