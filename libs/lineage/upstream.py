# =============================================================================
# Upstream Run Tracer
# =============================================================================
# Groups the flat upstream run closure into one entry per run, each with
# every dataset version that run consumed.
# =============================================================================

"""Upstream run lineage: run -> input dataset version -> producing run."""

import logging
from uuid import UUID

from libs.models import UpstreamRun, UpstreamRunLineage, UpstreamRunRow

from .repository import LineageRepository

__all__ = ["UpstreamRunTracer", "group_upstream_rows"]

logger = logging.getLogger(__name__)


def group_upstream_rows(rows: list[UpstreamRunRow]) -> UpstreamRunLineage:
    """
    Group upstream rows by run id, keeping first-seen run order.

    Job and run are taken from the first row of each group; inputs keep the
    row order and skip rows without an input.
    """
    grouped: dict[UUID, list[UpstreamRunRow]] = {}
    for row in rows:
        grouped.setdefault(row.run.id, []).append(row)

    runs = []
    for group in grouped.values():
        first = group[0]
        inputs = tuple(row.input for row in group if row.input is not None)
        runs.append(UpstreamRun(job=first.job, run=first.run, inputs=inputs))
    return UpstreamRunLineage(runs=tuple(runs))


class UpstreamRunTracer:
    """Traces the chain of runs that produced a run's inputs."""

    def __init__(self, repository: LineageRepository) -> None:
        self._repository = repository

    def trace(self, run_id: UUID, depth: int) -> UpstreamRunLineage:
        """
        Return the upstream lineage of ``run_id`` up to ``depth`` levels.

        An unknown run yields an empty lineage.
        """
        logger.debug("Tracing upstream runs of '%s' with depth '%s'", run_id, depth)
        rows = list(self._repository.get_upstream_runs(run_id, depth))
        return group_upstream_rows(rows)
