"""Helpers deriving node ids and edges from catalog rows."""

from typing import Iterable

from libs.models import DatasetData, DatasetId, Edge, JobData, NodeId

__all__ = [
    "job_node_id",
    "dataset_node_id",
    "edges_from",
    "edges_to",
    "dataset_ids",
]


def job_node_id(job: JobData) -> NodeId:
    return NodeId.of_job(job.namespace, job.name)


def dataset_node_id(dataset: DatasetData) -> NodeId:
    return NodeId.of_dataset(dataset.namespace, dataset.name)


def edges_from(origin: NodeId, destinations: Iterable[NodeId]) -> set[Edge]:
    """Outbound edges of ``origin``."""
    return {Edge(origin=origin, destination=dest) for dest in destinations}


def edges_to(origins: Iterable[NodeId], destination: NodeId) -> set[Edge]:
    """Inbound edges of ``destination``."""
    return {Edge(origin=origin, destination=destination) for origin in origins}


def dataset_ids(datasets: Iterable[DatasetData]) -> tuple[DatasetId, ...]:
    """Sorted, deduplicated dataset id projection."""
    ids = {dataset.id for dataset in datasets}
    return tuple(sorted(ids, key=lambda ds: (ds.namespace, ds.name)))
