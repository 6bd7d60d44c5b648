# =============================================================================
# Lineage Graph Models Module
# =============================================================================
# Defines the lineage graph values produced by the graph builder:
# - NodeType: Job or dataset node
# - Edge: Directed (origin, destination) pair
# - Node: Graph node with payload and edge sets
# - Lineage: Deterministically ordered set of nodes
# =============================================================================

from enum import Enum
from typing import Iterable, Optional, Union

from pydantic import field_validator

from .base import CatalogModel
from .dataset import DatasetData
from .ids import NodeId
from .job import JobData

__all__ = ["NodeType", "Edge", "Node", "Lineage"]


class NodeType(str, Enum):
    """Type of a lineage graph node."""

    JOB = "JOB"
    DATASET = "DATASET"


class Edge(CatalogModel):
    """Directed edge between two lineage graph nodes."""

    origin: NodeId
    destination: NodeId

    @property
    def sort_key(self) -> tuple:
        return (self.origin.sort_key, self.destination.sort_key)


def _sorted_edges(edges: Iterable[Edge]) -> tuple[Edge, ...]:
    return tuple(sorted(set(edges), key=lambda edge: edge.sort_key))


class Node(CatalogModel):
    """
    Node of a lineage graph.

    Edge sets are deduplicated and kept sorted so that serializing the same
    graph twice yields byte-identical output.
    """

    id: NodeId
    type: NodeType
    data: Union[JobData, DatasetData]
    in_edges: tuple[Edge, ...] = ()
    out_edges: tuple[Edge, ...] = ()

    @field_validator("in_edges", "out_edges", mode="after")
    @classmethod
    def _dedupe_and_sort(cls, edges: tuple[Edge, ...]) -> tuple[Edge, ...]:
        return _sorted_edges(edges)

    @classmethod
    def job(
        cls,
        data: JobData,
        in_edges: Iterable[Edge] = (),
        out_edges: Iterable[Edge] = (),
    ) -> "Node":
        return cls(
            id=data.node_id,
            type=NodeType.JOB,
            data=data,
            in_edges=tuple(in_edges),
            out_edges=tuple(out_edges),
        )

    @classmethod
    def dataset(
        cls,
        data: DatasetData,
        in_edges: Iterable[Edge] = (),
        out_edges: Iterable[Edge] = (),
    ) -> "Node":
        return cls(
            id=data.node_id,
            type=NodeType.DATASET,
            data=data,
            in_edges=tuple(in_edges),
            out_edges=tuple(out_edges),
        )


class Lineage(CatalogModel):
    """
    Lineage graph: nodes sorted by node id.

    The first node seen for a given id wins; the rest are dropped.
    """

    graph: tuple[Node, ...] = ()

    @field_validator("graph", mode="after")
    @classmethod
    def _dedupe_and_sort(cls, nodes: tuple[Node, ...]) -> tuple[Node, ...]:
        unique: dict[NodeId, Node] = {}
        for node in nodes:
            unique.setdefault(node.id, node)
        return tuple(sorted(unique.values(), key=lambda node: node.id.sort_key))

    @classmethod
    def of(cls, nodes: Iterable[Node]) -> "Lineage":
        return cls(graph=tuple(nodes))

    @classmethod
    def empty(cls) -> "Lineage":
        return cls(graph=())

    def node(self, node_id: NodeId) -> Optional[Node]:
        return next((node for node in self.graph if node.id == node_id), None)

    def edges(self) -> set[Edge]:
        """All edges of the graph, inbound and outbound."""
        return {edge for node in self.graph for edge in (*node.in_edges, *node.out_edges)}
