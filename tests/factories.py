"""
Row factories and an in-memory lineage repository for tests.

Engine tests describe a catalog as plain jobs, datasets and runs.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID, uuid4

from libs.models import (
    DatasetData,
    JobData,
    JobRow,
    Run,
    RunState,
    UpstreamRunRow,
)


# =============================================================================
# Row Factories
# =============================================================================

def make_dataset(namespace: str, name: str, **kwargs) -> DatasetData:
    """DatasetData with a fresh uuid."""
    return DatasetData(uuid=kwargs.pop("uuid", uuid4()), namespace=namespace, name=name, **kwargs)


def make_job(
    namespace: str,
    name: str,
    inputs: Iterable[DatasetData] = (),
    outputs: Iterable[DatasetData] = (),
    **kwargs,
) -> JobData:
    """JobData reading ``inputs`` and writing ``outputs``."""
    return JobData(
        uuid=kwargs.pop("uuid", uuid4()),
        namespace=namespace,
        name=name,
        input_uuids=frozenset(ds.uuid for ds in inputs),
        output_uuids=frozenset(ds.uuid for ds in outputs),
        **kwargs,
    )


def make_run(job: JobData, state: RunState = RunState.COMPLETED, **kwargs) -> Run:
    """Run of ``job``."""
    return Run(
        id=kwargs.pop("id", uuid4()),
        job_uuid=job.uuid,
        job_name=job.name,
        namespace_name=job.namespace,
        state=state,
        created_at=kwargs.pop("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        **kwargs,
    )


# =============================================================================
# In-memory Repository
# =============================================================================

class InMemoryLineageRepository:
    """
    Lineage repository over plain lists of rows.

    Closure semantics match the MongoDB store: each round adds every job
    sharing an input or output dataset with the previous round's jobs.
    Every call is recorded in ``calls`` as (method, args).
    """

    def __init__(
        self,
        jobs: Iterable[JobData] = (),
        datasets: Iterable[DatasetData] = (),
        runs: Iterable[Run] = (),
        upstream_rows: Iterable[UpstreamRunRow] = (),
    ) -> None:
        self.jobs = list(jobs)
        self.datasets = list(datasets)
        self.runs = list(runs)
        self.upstream_rows = list(upstream_rows)
        self.calls: list[tuple] = []

    def find_job_by_name(self, namespace: str, name: str) -> Optional[JobRow]:
        self.calls.append(("find_job_by_name", namespace, name))
        for job in self.jobs:
            if job.namespace.casefold() == namespace.casefold() and job.name.casefold() == name.casefold():
                return JobRow(uuid=job.uuid, namespace=job.namespace, name=job.name)
        return None

    def find_job_uuid_from_dataset(self, name: str, namespace: str) -> Optional[UUID]:
        self.calls.append(("find_job_uuid_from_dataset", name, namespace))
        dataset = self.get_dataset_data_by_name(namespace, name)
        if dataset is None:
            return None
        writers = [job for job in self.jobs if dataset.uuid in job.output_uuids]
        readers = [job for job in self.jobs if dataset.uuid in job.input_uuids]
        for job in (*writers, *readers):
            return job.uuid
        return None

    def get_lineage(self, job_uuids, depth: int) -> list[JobData]:
        self.calls.append(("get_lineage", frozenset(job_uuids), depth))
        found = {job.uuid: job for job in self.jobs if job.uuid in set(job_uuids)}
        frontier = list(found.values())
        for _ in range(depth):
            touched = {uuid for job in frontier for uuid in (*job.input_uuids, *job.output_uuids)}
            frontier = [
                job
                for job in self.jobs
                if job.uuid not in found and touched & (job.input_uuids | job.output_uuids)
            ]
            if not frontier:
                break
            found.update((job.uuid, job) for job in frontier)
        return list(found.values())

    def get_current_runs(self, job_uuids) -> list[Run]:
        self.calls.append(("get_current_runs", frozenset(job_uuids)))
        return [
            run.model_copy(update={"facets": {}})
            for run in self.runs
            if run.job_uuid in set(job_uuids)
        ]

    def get_current_runs_with_facets(self, job_uuids) -> list[Run]:
        self.calls.append(("get_current_runs_with_facets", frozenset(job_uuids)))
        return [run for run in self.runs if run.job_uuid in set(job_uuids)]

    def get_dataset_data(self, dataset_uuids) -> list[DatasetData]:
        self.calls.append(("get_dataset_data", frozenset(dataset_uuids)))
        return [ds for ds in self.datasets if ds.uuid in set(dataset_uuids)]

    def get_dataset_data_by_name(self, namespace: str, name: str) -> Optional[DatasetData]:
        for dataset in self.datasets:
            if dataset.namespace.casefold() == namespace.casefold() and dataset.name.casefold() == name.casefold():
                return dataset
        return None

    def get_upstream_runs(self, run_id: UUID, depth: int) -> list[UpstreamRunRow]:
        self.calls.append(("get_upstream_runs", run_id, depth))
        return list(self.upstream_rows)

    def called(self, method: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method]


