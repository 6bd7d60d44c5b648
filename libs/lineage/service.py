"""Lineage service facade used by the webapp."""

from typing import Optional
from uuid import UUID

from libs.models import Lineage, LineageSettings, NodeId, UpstreamRunLineage

from .graph_builder import LineageGraphBuilder
from .repository import LineageRepository
from .upstream import UpstreamRunTracer

__all__ = ["LineageService"]


class LineageService:
    """
    Exposes the two lineage operations with configured depth bounds.

    Holds no state across calls; concurrent calls are independent.
    """

    def __init__(
        self,
        repository: LineageRepository,
        settings: Optional[LineageSettings] = None,
    ) -> None:
        self._settings = settings or LineageSettings()
        self._builder = LineageGraphBuilder(repository)
        self._tracer = UpstreamRunTracer(repository)

    @property
    def settings(self) -> LineageSettings:
        return self._settings

    def lineage(
        self,
        node_id: NodeId,
        depth: Optional[int] = None,
        with_run_facets: bool = False,
    ) -> Lineage:
        """
        Build the lineage graph around a job or dataset.

        Raises:
            InvalidNodeKindError: If ``node_id`` is not a job or dataset id
        """
        return self._builder.build(
            node_id, self._settings.clamp(depth), with_run_facets
        )

    def upstream(self, run_id: UUID, depth: Optional[int] = None) -> UpstreamRunLineage:
        """Trace the runs that produced the inputs of ``run_id``."""
        resolved = self._settings.clamp(
            depth, default=self._settings.upstream_default_depth
        )
        return self._tracer.trace(run_id, resolved)
