# =============================================================================
# Lineage Router Unit Tests
# =============================================================================
# Tests for the lineage graph and upstream run endpoints.
# =============================================================================

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from pymongo.errors import ServerSelectionTimeoutError
from starlette.testclient import TestClient

from libs.lineage import InvalidNodeKindError
from libs.models import (
    DatasetData,
    DatasetSummary,
    Edge,
    JobData,
    JobSummary,
    Lineage,
    Node,
    NodeId,
    RunSummary,
    UpstreamRun,
    UpstreamRunLineage,
)


@pytest.fixture
def mock_lineage_service():
    with patch("app.routers.lineage.get_lineage_service") as mock_factory:
        mock_service = MagicMock()
        mock_factory.return_value = mock_service
        yield mock_service


@pytest.fixture
def client():
    from app.main import app

    return TestClient(app)


def build_lineage() -> Lineage:
    dataset = DatasetData(uuid=uuid4(), namespace="warehouse", name="raw.orders")
    job = JobData(
        uuid=uuid4(),
        namespace="etl",
        name="ingest",
        output_uuids=frozenset({dataset.uuid}),
        outputs=(dataset.id,),
    )
    edge = Edge(origin=job.node_id, destination=dataset.node_id)
    return Lineage.of(
        [Node.job(job, out_edges=[edge]), Node.dataset(dataset, in_edges=[edge])]
    )


class TestLineageEndpoint:
    def test_returns_graph(self, client, mock_lineage_service):
        mock_lineage_service.lineage.return_value = build_lineage()

        response = client.get(
            "/api/v1/lineage", params={"nodeId": "job:etl:ingest", "depth": 3}
        )

        assert response.status_code == 200
        graph = response.json()["graph"]
        assert [node["id"] for node in graph] == ["dataset:warehouse:raw.orders", "job:etl:ingest"]
        assert graph[1]["type"] == "JOB"
        assert graph[1]["data"]["outputs"] == [{"namespace": "warehouse", "name": "raw.orders"}]
        assert graph[0]["inEdges"] == [
            {"origin": "job:etl:ingest", "destination": "dataset:warehouse:raw.orders"}
        ]
        mock_lineage_service.lineage.assert_called_once_with(
            NodeId.parse("job:etl:ingest"), 3, False
        )

    def test_depth_and_facets_are_optional(self, client, mock_lineage_service):
        mock_lineage_service.lineage.return_value = Lineage.empty()

        response = client.get(
            "/api/v1/lineage",
            params={"nodeId": "dataset:warehouse:raw.orders", "withRunFacets": "true"},
        )

        assert response.status_code == 200
        assert response.json() == {"graph": []}
        mock_lineage_service.lineage.assert_called_once_with(
            NodeId.parse("dataset:warehouse:raw.orders"), None, True
        )

    @pytest.mark.parametrize("node_id", ["orders", "task:etl:ingest", "job:etl"])
    def test_malformed_node_id_is_rejected(self, client, mock_lineage_service, node_id):
        response = client.get("/api/v1/lineage", params={"nodeId": node_id})

        assert response.status_code == 400
        assert "Invalid node id" in response.json()["detail"]
        mock_lineage_service.lineage.assert_not_called()

    def test_invalid_node_kind_is_rejected(self, client, mock_lineage_service):
        mock_lineage_service.lineage.side_effect = InvalidNodeKindError(
            "Node 'run:abc' must be of type dataset or job!"
        )

        response = client.get("/api/v1/lineage", params={"nodeId": "run:abc"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Node 'run:abc' must be of type dataset or job!"

    def test_negative_depth_is_rejected(self, client, mock_lineage_service):
        response = client.get(
            "/api/v1/lineage", params={"nodeId": "job:etl:ingest", "depth": -1}
        )

        assert response.status_code == 422

    def test_store_failure_returns_503(self, client, mock_lineage_service):
        mock_lineage_service.lineage.side_effect = ServerSelectionTimeoutError("down")

        response = client.get("/api/v1/lineage", params={"nodeId": "job:etl:ingest"})

        assert response.status_code == 503


class TestUpstreamEndpoint:
    def test_returns_runs(self, client, mock_lineage_service):
        run_id = uuid4()
        producer = uuid4()
        mock_lineage_service.upstream.return_value = UpstreamRunLineage(
            runs=(
                UpstreamRun(
                    job=JobSummary(namespace="etl", name="clean"),
                    run=RunSummary(id=run_id, status="COMPLETED"),
                    inputs=(
                        DatasetSummary(
                            namespace="warehouse",
                            name="raw.orders",
                            version=uuid4(),
                            produced_by_run_id=producer,
                        ),
                    ),
                ),
            )
        )

        response = client.get(f"/api/v1/runs/{run_id}/upstream", params={"depth": 2})

        assert response.status_code == 200
        runs = response.json()["runs"]
        assert runs[0]["run"]["id"] == str(run_id)
        assert runs[0]["inputs"][0]["producedByRunId"] == str(producer)
        mock_lineage_service.upstream.assert_called_once_with(run_id, 2)

    def test_unknown_run_returns_empty(self, client, mock_lineage_service):
        mock_lineage_service.upstream.return_value = UpstreamRunLineage()

        response = client.get(f"/api/v1/runs/{uuid4()}/upstream")

        assert response.status_code == 200
        assert response.json() == {"runs": []}

    def test_invalid_run_id(self, client, mock_lineage_service):
        response = client.get("/api/v1/runs/not-a-uuid/upstream")

        assert response.status_code == 422
        mock_lineage_service.upstream.assert_not_called()

    def test_store_failure_returns_503(self, client, mock_lineage_service):
        mock_lineage_service.upstream.side_effect = ServerSelectionTimeoutError("down")

        response = client.get(f"/api/v1/runs/{uuid4()}/upstream")

        assert response.status_code == 503
