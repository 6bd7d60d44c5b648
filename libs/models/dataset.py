# =============================================================================
# Dataset Models Module
# =============================================================================
# Defines dataset models returned by the catalog store:
# - DatasetField: Column level schema entry
# - DatasetData: Dataset payload of a lineage graph node
# =============================================================================

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, computed_field

from .base import CatalogModel
from .ids import DatasetId, NodeId

__all__ = ["DatasetField", "DatasetData"]


class DatasetField(CatalogModel):
    """Schema field of a dataset."""

    name: str = Field(..., min_length=1)
    type: Optional[str] = None
    description: Optional[str] = None


class DatasetData(CatalogModel):
    """
    Dataset row as materialized for lineage graph assembly.

    Equality and hashing follow the dataset identity (namespace, name), not
    the row uuid or any other attribute, because the graph builder keys maps
    by dataset. Identity is compared case-insensitively, consistent with
    ``NodeId``.

    Attributes:
        uuid: Stable unique row id
        namespace: Dataset namespace
        name: Dataset name
        type: Dataset type (DB_TABLE, STREAM, ...)
        physical_name: Name in the source system
        source_name: Name of the source the dataset lives in
        description: Optional description
        fields: Schema fields
        created_at: Creation timestamp
        updated_at: Last metadata update
        last_modified_at: Last time a run wrote a new version
    """

    uuid: UUID
    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: str = "DB_TABLE"
    physical_name: Optional[str] = None
    source_name: Optional[str] = None
    description: Optional[str] = None
    fields: tuple[DatasetField, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_modified_at: Optional[datetime] = None

    @computed_field
    @property
    def id(self) -> DatasetId:
        return DatasetId(namespace=self.namespace, name=self.name)

    @property
    def node_id(self) -> NodeId:
        return NodeId.of_dataset(self.namespace, self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DatasetData):
            return NotImplemented
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)
