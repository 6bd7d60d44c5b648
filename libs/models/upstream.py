# =============================================================================
# Upstream Run Models Module
# =============================================================================
# Defines the upstream run lineage models:
# - JobSummary / RunSummary / DatasetSummary: Raw row parts
# - UpstreamRunRow: One (run, input dataset version) row
# - UpstreamRun: A run with all of its inputs
# - UpstreamRunLineage: Ordered chain of upstream runs
# =============================================================================

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from .base import CatalogModel

__all__ = [
    "JobSummary",
    "RunSummary",
    "DatasetSummary",
    "UpstreamRunRow",
    "UpstreamRun",
    "UpstreamRunLineage",
]


class JobSummary(CatalogModel):
    """Job that executed an upstream run."""

    namespace: str
    name: str
    version: Optional[UUID] = None


class RunSummary(CatalogModel):
    """Upstream run state and timing."""

    id: UUID
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    status: str


class DatasetSummary(CatalogModel):
    """Dataset version read by an upstream run."""

    namespace: str
    name: str
    version: UUID
    produced_by_run_id: Optional[UUID] = None


class UpstreamRunRow(CatalogModel):
    """
    Flat row of the upstream run closure.

    One row per (run, input dataset version) pair; a run that read nothing
    yields a single row with ``input`` set to None.
    """

    job: JobSummary
    run: RunSummary
    input: Optional[DatasetSummary] = None


class UpstreamRun(CatalogModel):
    """A run of the upstream chain with every dataset version it consumed."""

    job: JobSummary
    run: RunSummary
    inputs: tuple[DatasetSummary, ...] = ()


class UpstreamRunLineage(CatalogModel):
    """Upstream runs in first-seen order."""

    runs: tuple[UpstreamRun, ...] = Field(default_factory=tuple)
