# =============================================================================
# Lineage Service Unit Tests
# =============================================================================

from uuid import uuid4

from libs.lineage import LineageService
from libs.models import LineageSettings, NodeId


def _settings() -> LineageSettings:
    return LineageSettings(default_depth=5, max_depth=8, upstream_default_depth=2)


class TestLineageService:
    """Test depth resolution before delegating to the engine."""

    def test_lineage_uses_default_depth(self, orders_repository):
        LineageService(orders_repository, _settings()).lineage(NodeId.parse("job:etl:clean"))
        assert orders_repository.called("get_lineage")[0][2] == 5

    def test_lineage_caps_depth(self, orders_repository):
        LineageService(orders_repository, _settings()).lineage(
            NodeId.parse("job:etl:clean"), depth=50
        )
        assert orders_repository.called("get_lineage")[0][2] == 8

    def test_lineage_accepts_zero_depth(self, orders_repository):
        lineage = LineageService(orders_repository, _settings()).lineage(
            NodeId.parse("job:etl:ingest"), depth=0
        )
        assert [node.id.value for node in lineage.graph] == [
            "dataset:warehouse:raw.orders",
            "job:etl:ingest",
        ]

    def test_lineage_with_run_facets(self, orders_repository):
        LineageService(orders_repository, _settings()).lineage(
            NodeId.parse("job:etl:clean"), with_run_facets=True
        )
        assert len(orders_repository.called("get_current_runs_with_facets")) == 1

    def test_upstream_uses_upstream_default(self, orders_repository):
        run_id = uuid4()
        service = LineageService(orders_repository, _settings())

        service.upstream(run_id)
        service.upstream(run_id, depth=20)

        assert [call[2] for call in orders_repository.called("get_upstream_runs")] == [2, 8]

    def test_settings_default_to_environment(self, orders_repository):
        assert LineageService(orders_repository).settings.default_depth == 20
