import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from smartalbums.core.enums import JobStatus
from smartalbums.core.errors import InfrastructureUnavailable
from smartalbums.dependencies import get_smart_album_service
from smartalbums.main import app


@pytest.fixture
def service():
    svc = AsyncMock()
    app.dependency_overrides[get_smart_album_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    def test_given_health_endpoint_when_making_get_request_then_returns_200_with_ok_status(self):
        """
        Given: The health check endpoint (/healthz)
        When: Making a GET request
        Then: Returns 200 status code with {"status": "ok"} response
        """
        # Given
        client = TestClient(app)

        # When
        response = client.get("/healthz")

        # Then
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestMatchSmartAlbumsEndpoint:
    def test_given_asset_id_when_posting_match_job_then_returns_job_status(self, service):
        """
        Given: A match job for an asset
        When: Posting it to the job endpoint
        Then: The service runs for that asset and its status is returned
        """
        # Given
        service.handle_match_smart_albums.return_value = JobStatus.skipped
        client = TestClient(app)

        # When
        response = client.post("/api/v1/jobs/smart-albums/match", json={"assetId": "a1"})

        # Then
        assert response.status_code == 200
        assert response.json() == {"status": "skipped"}
        job = service.handle_match_smart_albums.await_args.args[0]
        assert job.asset_id == "a1"

    def test_given_unreachable_queue_when_posting_match_job_then_returns_503(self, service):
        """
        Given: The job queue is unavailable
        When: Posting a match job
        Then: Returns 503 so the caller retries later
        """
        # Given
        service.handle_match_smart_albums.side_effect = InfrastructureUnavailable("job queue")
        client = TestClient(app)

        # When
        response = client.post("/api/v1/jobs/smart-albums/match", json={"assetId": "a1"})

        # Then
        assert response.status_code == 503
        assert response.json()["component"] == "job queue"

    def test_given_missing_asset_id_when_posting_match_job_then_returns_422(self, service):
        """
        Given: A body without assetId
        When: Posting it
        Then: Request validation rejects it
        """
        # Given
        client = TestClient(app)

        # When
        response = client.post("/api/v1/jobs/smart-albums/match", json={})

        # Then
        assert response.status_code == 422
        service.handle_match_smart_albums.assert_not_awaited()
