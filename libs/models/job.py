# =============================================================================
# Job and Run Models Module
# =============================================================================
# Defines job and run models returned by the catalog store:
# - RunState: Lifecycle state of a run
# - Run: A single execution of a job
# - JobRow: Minimal job row used to resolve a job by name
# - JobData: Job payload of a lineage graph node
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, computed_field, field_serializer

from .base import CatalogModel
from .ids import DatasetId, JobId, NodeId

__all__ = ["RunState", "Run", "JobRow", "JobData"]


class RunState(str, Enum):
    """Lifecycle state of a run."""

    NEW = "NEW"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"
    FAILED = "FAILED"

    @property
    def is_done(self) -> bool:
        return self in (RunState.COMPLETED, RunState.ABORTED, RunState.FAILED)


class Run(CatalogModel):
    """
    Run of a job.

    A run belongs to exactly one job. Besides the job uuid it carries the
    job's namespace and name, which the lineage builder uses to correlate
    runs with jobs.

    Attributes:
        id: Run identifier
        job_uuid: Uuid of the owning job
        job_name: Name of the owning job
        namespace_name: Namespace of the owning job
        state: Current run state
        created_at: When the run was recorded
        updated_at: Last state transition
        started_at: Start timestamp (if started)
        ended_at: End timestamp (if finished)
        job_version: Version of the job the run executed
        facets: Run facets; only populated by the facet-bearing fetch
    """

    id: UUID
    job_uuid: Optional[UUID] = None
    job_name: str = Field(..., min_length=1)
    namespace_name: str = Field(..., min_length=1)
    state: RunState = RunState.NEW
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    job_version: Optional[UUID] = None
    facets: dict[str, Any] = Field(default_factory=dict)

    def belongs_to(self, namespace: str, name: str) -> bool:
        """Case-insensitive match of the owning job's namespace and name."""
        return (
            self.job_name.casefold() == name.casefold()
            and self.namespace_name.casefold() == namespace.casefold()
        )


class JobRow(CatalogModel):
    """Minimal job row returned by name lookups."""

    uuid: UUID
    namespace: str
    name: str


class JobData(CatalogModel):
    """
    Job row as materialized by the lineage closure.

    ``input_uuids``/``output_uuids`` are the raw dataset references of the
    job; ``inputs``/``outputs`` are the dataset id projections filled in
    during graph assembly, once the references have been resolved against
    the datasets that actually exist. ``latest_run`` is set either by the
    store or by the builder's enrichment pass, which produces a new value
    via ``with_latest_run`` instead of mutating the closure result.

    Equality and hashing use the stable ``uuid``.
    """

    uuid: UUID
    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: str = "BATCH"
    description: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    input_uuids: frozenset[UUID] = frozenset()
    output_uuids: frozenset[UUID] = frozenset()
    inputs: tuple[DatasetId, ...] = ()
    outputs: tuple[DatasetId, ...] = ()
    latest_run: Optional[Run] = None
    parent_job_uuid: Optional[UUID] = None

    @computed_field
    @property
    def id(self) -> JobId:
        return JobId(namespace=self.namespace, name=self.name)

    @property
    def node_id(self) -> NodeId:
        return NodeId.of_job(self.namespace, self.name)

    @field_serializer("input_uuids", "output_uuids")
    def _serialize_uuids(self, value: frozenset[UUID]) -> list[str]:
        return sorted(str(uuid) for uuid in value)

    def with_latest_run(self, run: Run) -> "JobData":
        return self.model_copy(update={"latest_run": run})

    def with_datasets(
        self, inputs: tuple[DatasetId, ...], outputs: tuple[DatasetId, ...]
    ) -> "JobData":
        return self.model_copy(update={"inputs": inputs, "outputs": outputs})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JobData):
            return NotImplemented
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)
