# =============================================================================
# Lineage Repository Contract
# =============================================================================
# Storage operations the lineage engine reads from. The engine never builds
# queries itself; every fetch goes through this contract.
# =============================================================================

"""Storage contract consumed by the lineage engine."""

from typing import Collection, Optional, Protocol, Sequence
from uuid import UUID

from libs.models import DatasetData, JobData, JobRow, Run, UpstreamRunRow

__all__ = ["LineageRepository"]


class LineageRepository(Protocol):
    """Read operations backing lineage graph and upstream run queries."""

    def find_job_by_name(self, namespace: str, name: str) -> Optional[JobRow]:
        """Return the job row for (namespace, name), or None."""

    def find_job_uuid_from_dataset(self, name: str, namespace: str) -> Optional[UUID]:
        """Return the uuid of a job that reads or writes the dataset, or None."""

    def get_lineage(self, job_uuids: Collection[UUID], depth: int) -> Sequence[JobData]:
        """
        Return the jobs reachable from the seeds within ``depth`` hops.

        One hop goes from a job to every other job sharing one of its input
        or output datasets. The seeds themselves are included when they
        exist; an empty result means none of them could be materialized.
        """

    def get_current_runs(self, job_uuids: Collection[UUID]) -> Sequence[Run]:
        """Return the latest run of each job, without run facets."""

    def get_current_runs_with_facets(self, job_uuids: Collection[UUID]) -> Sequence[Run]:
        """Return the latest run of each job, including run facets."""

    def get_dataset_data(self, dataset_uuids: Collection[UUID]) -> Sequence[DatasetData]:
        """Return the datasets with the given uuids; unknown uuids are skipped."""

    def get_dataset_data_by_name(self, namespace: str, name: str) -> Optional[DatasetData]:
        """Return the dataset for (namespace, name), or None."""

    def get_upstream_runs(self, run_id: UUID, depth: int) -> Sequence[UpstreamRunRow]:
        """
        Return the flat upstream run closure of ``run_id``.

        Rows follow run -> input dataset version -> producing run, up to
        ``depth`` hops. An unknown run yields no rows.
        """
