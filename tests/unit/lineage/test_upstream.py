# =============================================================================
# Upstream Run Tracer Unit Tests
# =============================================================================

from datetime import datetime, timezone
from uuid import uuid4

from libs.lineage import UpstreamRunTracer
from libs.lineage.upstream import group_upstream_rows
from libs.models import DatasetSummary, JobSummary, RunSummary, UpstreamRunRow
from tests.factories import InMemoryLineageRepository


def _row(job: JobSummary, run: RunSummary, dataset: str = None) -> UpstreamRunRow:
    if dataset is None:
        return UpstreamRunRow(job=job, run=run)
    return UpstreamRunRow(
        job=job,
        run=run,
        input=DatasetSummary(namespace="wh", name=dataset, version=uuid4()),
    )


JOB_1 = JobSummary(namespace="etl", name="clean")
JOB_2 = JobSummary(namespace="etl", name="ingest")
RUN_1 = RunSummary(id=uuid4(), start=datetime(2024, 1, 2, tzinfo=timezone.utc), status="COMPLETED")
RUN_2 = RunSummary(id=uuid4(), start=datetime(2024, 1, 1, tzinfo=timezone.utc), status="COMPLETED")


class TestGroupUpstreamRows:
    """Test grouping of flat upstream rows."""

    def test_rows_grouped_by_run_in_first_seen_order(self):
        rows = [
            _row(JOB_1, RUN_1, "d1"),
            _row(JOB_1, RUN_1, "d2"),
            _row(JOB_2, RUN_2, "d3"),
        ]

        lineage = group_upstream_rows(rows)

        assert [run.run.id for run in lineage.runs] == [RUN_1.id, RUN_2.id]
        assert [ds.name for ds in lineage.runs[0].inputs] == ["d1", "d2"]
        assert [ds.name for ds in lineage.runs[1].inputs] == ["d3"]
        assert lineage.runs[1].job == JOB_2

    def test_run_without_inputs(self):
        lineage = group_upstream_rows([_row(JOB_2, RUN_2)])

        assert len(lineage.runs) == 1
        assert lineage.runs[0].inputs == ()

    def test_interleaved_rows_keep_first_seen_order(self):
        rows = [
            _row(JOB_2, RUN_2, "d3"),
            _row(JOB_1, RUN_1, "d1"),
            _row(JOB_2, RUN_2, "d4"),
        ]

        lineage = group_upstream_rows(rows)

        assert [run.run.id for run in lineage.runs] == [RUN_2.id, RUN_1.id]
        assert [ds.name for ds in lineage.runs[0].inputs] == ["d3", "d4"]

    def test_no_rows(self):
        assert group_upstream_rows([]).runs == ()

    def test_json_shape(self):
        data = group_upstream_rows([_row(JOB_1, RUN_1, "d1")]).to_json_dict()

        run = data["runs"][0]
        assert run["job"] == {"namespace": "etl", "name": "clean", "version": None}
        assert run["run"]["id"] == str(RUN_1.id)
        assert run["run"]["status"] == "COMPLETED"
        assert run["inputs"][0]["producedByRunId"] is None


class TestUpstreamRunTracer:
    """Test tracing through the repository."""

    def test_trace_passes_depth_and_groups(self):
        repository = InMemoryLineageRepository(
            upstream_rows=[_row(JOB_1, RUN_1, "d1"), _row(JOB_2, RUN_2)]
        )

        lineage = UpstreamRunTracer(repository).trace(RUN_1.id, 3)

        assert repository.called("get_upstream_runs") == [("get_upstream_runs", RUN_1.id, 3)]
        assert len(lineage.runs) == 2

    def test_unknown_run_yields_empty_lineage(self):
        lineage = UpstreamRunTracer(InMemoryLineageRepository()).trace(uuid4(), 10)
        assert lineage.runs == ()
