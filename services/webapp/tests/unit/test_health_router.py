# =============================================================================
# Health Router Unit Tests
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError
from starlette.testclient import TestClient


@pytest.fixture
def mock_mongodb_service():
    with patch("app.routers.health.get_mongodb_service") as mock_factory:
        mock_service = MagicMock()
        mock_factory.return_value = mock_service
        yield mock_service


@pytest.fixture
def client():
    from app.main import app

    return TestClient(app)


def test_health(client):
    from app import __version__

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": __version__}


def test_ready(client, mock_mongodb_service):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "services": {"mongodb": "ok"}}
    mock_mongodb_service.ping.assert_called_once()


def test_not_ready_when_mongodb_unreachable(client, mock_mongodb_service):
    mock_mongodb_service.ping.side_effect = ServerSelectionTimeoutError("down")

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["services"] == {"mongodb": "unreachable"}
