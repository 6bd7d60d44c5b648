# =============================================================================
# Identifier Models Module
# =============================================================================
# Defines identifiers for catalog entities:
# - NodeKind: Kind prefix of a node identifier
# - NodeId: Discriminated node identifier (kind, namespace, name)
# - JobId / DatasetId: Namespaced job and dataset names
# - RunId: Run identifier (UUID)
# =============================================================================

import re
from enum import Enum
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

__all__ = [
    "NodeKind",
    "NodeId",
    "JobId",
    "DatasetId",
    "RunId",
    "parse_node_id",
]

NODE_ID_SEPARATOR = ":"

# A ":" followed by "//" or a digit belongs to a URI scheme or host:port.
_NAMESPACE_SEPARATOR = re.compile(r":(?!//|\d)")


# =============================================================================
# Node Kind Enum
# =============================================================================


class NodeKind(str, Enum):
    """Kind prefix of a node identifier."""

    DATASET = "dataset"
    DATASET_FIELD = "datasetField"
    JOB = "job"
    RUN = "run"


# =============================================================================
# Node Id Parsing
# =============================================================================


def parse_node_id(value: str) -> dict[str, str]:
    """
    Split a node identifier string into its kind, namespace and name.

    Accepted formats:
    - ``job:<namespace>:<name>``
    - ``dataset:<namespace>:<name>``
    - ``datasetField:<namespace>:<name>``
    - ``run:<uuid>``

    Namespaces may be URIs: a ``:`` followed by ``//`` or a digit stays in
    the namespace (``dataset:postgres://db:5432:public.orders``). The first
    other ``:`` ends the namespace, so names may contain ``:`` themselves
    (``dataset:warehouse:s3://bucket/orders``).

    Args:
        value: Node identifier string

    Returns:
        Dict with ``kind``, ``namespace`` and ``name`` keys

    Raises:
        TypeError: If the value is not a string
        ValueError: If the kind prefix is unknown or a part is missing
    """
    if not isinstance(value, str):
        raise TypeError(f"Node id must be a string, got {type(value).__name__}")

    value = value.strip()
    prefix, sep, rest = value.partition(NODE_ID_SEPARATOR)
    if not sep:
        raise ValueError(f"Node id '{value}' must start with a kind prefix")

    try:
        kind = NodeKind(prefix)
    except ValueError as exc:
        raise ValueError(f"Unknown node kind '{prefix}' in node id '{value}'") from exc

    if kind is NodeKind.RUN:
        return {"kind": kind.value, "namespace": "", "name": rest}

    namespace, sep, name = _split_namespace(rest)
    if not sep or not namespace or not name:
        raise ValueError(
            f"Node id '{value}' must have the form '{kind.value}:<namespace>:<name>'"
        )
    return {"kind": kind.value, "namespace": namespace, "name": name}


def _split_namespace(rest: str) -> tuple[str, str, str]:
    if rest.count(NODE_ID_SEPARATOR) <= 1:
        return rest.partition(NODE_ID_SEPARATOR)
    match = _NAMESPACE_SEPARATOR.search(rest)
    if match is None:
        return rest.rpartition(NODE_ID_SEPARATOR)
    return rest[: match.start()], NODE_ID_SEPARATOR, rest[match.end() :]


# =============================================================================
# Node Id Model
# =============================================================================


class NodeId(BaseModel):
    """
    Discriminated identifier of a lineage graph node.

    Equality, hashing and ordering use the casefolded (kind, namespace,
    name) key: the catalog resolves names case-insensitively, so
    ``job:Sales:Daily`` and ``job:sales:daily`` address the same node.
    Ordering breaks ties on the exact strings so that sorting is total.

    Serializes to its string form (``job:<namespace>:<name>``) and accepts
    either that string or a mapping when validated.
    """

    model_config = ConfigDict(frozen=True)

    kind: NodeKind
    namespace: str = ""
    name: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _parse_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return parse_node_id(data)
        return data

    @model_validator(mode="after")
    def _require_namespace(self) -> "NodeId":
        if self.kind is not NodeKind.RUN and not self.namespace:
            raise ValueError(f"{self.kind.value} node id requires a namespace")
        return self

    @model_serializer
    def _serialize(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "NodeId":
        return cls.model_validate(value)

    @classmethod
    def of_job(cls, namespace: str, name: str) -> "NodeId":
        return cls(kind=NodeKind.JOB, namespace=namespace, name=name)

    @classmethod
    def of_dataset(cls, namespace: str, name: str) -> "NodeId":
        return cls(kind=NodeKind.DATASET, namespace=namespace, name=name)

    @property
    def value(self) -> str:
        if self.kind is NodeKind.RUN:
            return f"{self.kind.value}{NODE_ID_SEPARATOR}{self.name}"
        return NODE_ID_SEPARATOR.join((self.kind.value, self.namespace, self.name))

    @property
    def is_job(self) -> bool:
        return self.kind is NodeKind.JOB

    @property
    def is_dataset(self) -> bool:
        return self.kind is NodeKind.DATASET

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.kind.value, self.namespace.casefold(), self.name.casefold())

    @property
    def sort_key(self) -> tuple[tuple[str, str, str], tuple[str, str]]:
        return (self.key, (self.namespace, self.name))

    def as_job_id(self) -> "JobId":
        if not self.is_job:
            raise ValueError(f"Node '{self.value}' is not a job")
        return JobId(namespace=self.namespace, name=self.name)

    def as_dataset_id(self) -> "DatasetId":
        if not self.is_dataset:
            raise ValueError(f"Node '{self.value}' is not a dataset")
        return DatasetId(namespace=self.namespace, name=self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeId):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __lt__(self, other: "NodeId") -> bool:
        if not isinstance(other, NodeId):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Job / Dataset Ids
# =============================================================================


class JobId(BaseModel):
    """Namespaced job name."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    def to_node_id(self) -> NodeId:
        return NodeId.of_job(self.namespace, self.name)


class DatasetId(BaseModel):
    """Namespaced dataset name."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    def to_node_id(self) -> NodeId:
        return NodeId.of_dataset(self.namespace, self.name)


RunId = Annotated[UUID, Field(description="Run identifier")]
"""Run identifier type. Runs are addressed by UUID."""
