# =============================================================================
# Lineage Graph Builder
# =============================================================================
# Resolves a job or dataset node to a seed job, fetches the bounded
# job/dataset closure from the repository and assembles a bipartite graph
# of job and dataset nodes in memory.
# =============================================================================

"""Lineage graph construction over the job/dataset closure."""

import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence
from uuid import UUID

from libs.models import DatasetData, JobData, Lineage, Node, NodeId, Run

from .edges import dataset_ids, dataset_node_id, edges_from, edges_to, job_node_id
from .errors import InvalidNodeKindError
from .repository import LineageRepository

__all__ = ["LineageGraphBuilder"]

logger = logging.getLogger(__name__)


class LineageGraphBuilder:
    """
    Builds lineage graphs from repository rows.

    The only hard failure is a seed that is neither a job nor a dataset
    (``InvalidNodeKindError``). Missing jobs, vanished closures and datasets
    that no longer share lineage with their job all degrade to the orphan
    graph: the requested dataset alone, without edges.
    """

    def __init__(self, repository: LineageRepository) -> None:
        self._repository = repository

    def build(self, node_id: NodeId, depth: int, with_run_facets: bool = False) -> Lineage:
        """
        Build the lineage graph around ``node_id``.

        Args:
            node_id: Job or dataset node to start from
            depth: Number of job-to-job hops the closure may take
            with_run_facets: Attach latest runs including their facets

        Returns:
            Lineage with nodes sorted by node id

        Raises:
            InvalidNodeKindError: If ``node_id`` is not a job or dataset id
        """
        logger.debug(
            "Attempting to get lineage for node '%s' with depth '%s'",
            node_id.value,
            depth,
        )
        job_uuid = self.resolve_job_uuid(node_id)
        if job_uuid is None:
            logger.warning(
                "Failed to get job associated with node '%s', returning orphan graph...",
                node_id.value,
            )
            return self._orphan_lineage(node_id)

        logger.debug("Attempting to get lineage for job '%s'", job_uuid)
        jobs = _unique_jobs(self._repository.get_lineage({job_uuid}, depth))
        if not jobs:
            logger.warning(
                "Failed to get lineage for job '%s' associated with node '%s', "
                "returning orphan graph...",
                job_uuid,
                node_id.value,
            )
            return self._orphan_lineage(node_id)

        jobs = self._with_latest_runs(jobs, with_run_facets)

        referenced = {
            uuid for job in jobs for uuid in (*job.input_uuids, *job.output_uuids)
        }
        datasets: list[DatasetData] = []
        if referenced:
            datasets = list(self._repository.get_dataset_data(referenced))

        if node_id.is_dataset and not any(
            dataset_node_id(dataset) == node_id for dataset in datasets
        ):
            logger.warning(
                "Found jobs %s which no longer share lineage with dataset '%s' - discarding",
                [job.node_id.value for job in jobs],
                node_id.value,
            )
            return self._orphan_lineage(node_id)

        return self._to_lineage(jobs, datasets)

    def resolve_job_uuid(self, node_id: NodeId) -> Optional[UUID]:
        """
        Resolve a node id to the uuid of the job seeding the traversal.

        Raises:
            InvalidNodeKindError: If ``node_id`` is not a job or dataset id
        """
        if node_id.is_job:
            row = self._repository.find_job_by_name(node_id.namespace, node_id.name)
            return row.uuid if row is not None else None
        if node_id.is_dataset:
            return self._repository.find_job_uuid_from_dataset(
                node_id.name, node_id.namespace
            )
        raise InvalidNodeKindError(
            f"Node '{node_id.value}' must be of type dataset or job!"
        )

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def _with_latest_runs(
        self, jobs: list[JobData], with_run_facets: bool
    ) -> list[JobData]:
        """Attach the first matching current run to jobs that have none."""
        job_uuids = {job.uuid for job in jobs}
        if with_run_facets:
            runs = list(self._repository.get_current_runs_with_facets(job_uuids))
        else:
            runs = list(self._repository.get_current_runs(job_uuids))

        enriched = []
        for job in jobs:
            if job.latest_run is None:
                run = _first_run_of(job, runs)
                if run is not None:
                    job = job.with_latest_run(run)
            enriched.append(job)
        return enriched

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _to_lineage(self, jobs: list[JobData], datasets: list[DatasetData]) -> Lineage:
        datasets_by_uuid = {dataset.uuid: dataset for dataset in datasets}
        producers: dict[DatasetData, set[NodeId]] = defaultdict(set)
        consumers: dict[DatasetData, set[NodeId]] = defaultdict(set)
        nodes: list[Node] = []

        for job in jobs:
            inputs = _resolve(job.input_uuids, datasets_by_uuid)
            outputs = _resolve(job.output_uuids, datasets_by_uuid)
            origin = job_node_id(job)
            for dataset in inputs:
                consumers[dataset].add(origin)
            for dataset in outputs:
                producers[dataset].add(origin)

            nodes.append(
                Node.job(
                    job.with_datasets(dataset_ids(inputs), dataset_ids(outputs)),
                    in_edges=edges_to((dataset_node_id(ds) for ds in inputs), origin),
                    out_edges=edges_from(origin, (dataset_node_id(ds) for ds in outputs)),
                )
            )

        for dataset in dict.fromkeys(datasets):
            origin = dataset_node_id(dataset)
            nodes.append(
                Node.dataset(
                    dataset,
                    in_edges=edges_to(producers.get(dataset, ()), origin),
                    out_edges=edges_from(origin, consumers.get(dataset, ())),
                )
            )

        return Lineage.of(nodes)

    def _orphan_lineage(self, node_id: NodeId) -> Lineage:
        """Single dataset node without edges; empty when there is no dataset."""
        if not node_id.is_dataset:
            return Lineage.empty()
        dataset = self._repository.get_dataset_data_by_name(
            node_id.namespace, node_id.name
        )
        if dataset is None:
            logger.warning("Dataset '%s' not found, returning empty graph", node_id.value)
            return Lineage.empty()
        return Lineage.of([Node.dataset(dataset)])


def _unique_jobs(jobs: Iterable[JobData]) -> list[JobData]:
    return list(dict.fromkeys(job for job in jobs if job is not None))


def _first_run_of(job: JobData, runs: Sequence[Run]) -> Optional[Run]:
    return next((run for run in runs if run.belongs_to(job.namespace, job.name)), None)


def _resolve(
    uuids: Iterable[UUID], datasets_by_uuid: dict[UUID, DatasetData]
) -> set[DatasetData]:
    # References without a fetched dataset are dropped.
    return {datasets_by_uuid[uuid] for uuid in uuids if uuid in datasets_by_uuid}
