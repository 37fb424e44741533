"""Tests for the asset and autopilot endpoints."""

from uuid import uuid4

from fastapi.testclient import TestClient

from autopilot_engine.domain.models import AutopilotConfig, Product, Store


def test_start_chain(test_client: TestClient) -> None:
    """Test a chain request is accepted with its image stage submitted."""
    response = test_client.post(
        "/api/v1/assets/chain",
        json={"owner_id": "owner-1", "product": "GlowBottle", "features": "Keeps drinks cold"},
    )

    assert response.status_code == 202
    data = response.json()
    assert data["status"] == "processing"
    assert data["kind"] == "image"
    assert data["result_url"] is None


def test_start_chain_validation(test_client: TestClient) -> None:
    """Test a chain request needs a product."""
    response = test_client.post("/api/v1/assets/chain", json={"owner_id": "owner-1"})

    assert response.status_code == 422


def test_check_asset_advances_chain(test_client: TestClient, repos) -> None:
    """Test checking an asset drives the chain to its final video."""
    asset_id = test_client.post(
        "/api/v1/assets/chain", json={"owner_id": "owner-1", "product": "GlowBottle"}
    ).json()["id"]

    response = test_client.post(f"/api/v1/assets/{asset_id}/check")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["kind"] == "video"
    assert data["result_url"].endswith(".mp4")
    assert data["completed_at"] is not None
    assert "chain_state" not in data

    again = test_client.get(f"/api/v1/assets/{asset_id}")
    assert again.json() == data


def test_unknown_asset(test_client: TestClient) -> None:
    """Test unknown assets are 404s."""
    assert test_client.get(f"/api/v1/assets/{uuid4()}").status_code == 404
    assert test_client.post(f"/api/v1/assets/{uuid4()}/check").status_code == 404


def _add_config(repos, videos_per_week: int = 7) -> AutopilotConfig:
    store = repos.stores.add(Store(owner_id="owner-1", name="Glow"))
    return repos.configs.add(
        AutopilotConfig(store_id=store.id, owner_id="owner-1", videos_per_week=videos_per_week)
    )


def test_activate_pause_resume(test_client: TestClient, repos) -> None:
    """Test the config lifecycle endpoints."""
    config = _add_config(repos)
    preview_id = str(uuid4())

    response = test_client.post(
        f"/api/v1/autopilot/configs/{config.id}/activate",
        json={"first_video_asset_id": preview_id},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_active"] is True
    assert data["is_approved"] is True
    assert data["videos_generated"] == 1
    assert data["next_scheduled_at"] is not None
    assert repos.configs.get(config.id).first_video_asset_id is not None

    paused = test_client.post(f"/api/v1/autopilot/configs/{config.id}/pause").json()
    assert paused["is_active"] is False

    resumed = test_client.post(f"/api/v1/autopilot/configs/{config.id}/resume").json()
    assert resumed["is_active"] is True


def test_activate_errors(test_client: TestClient, repos) -> None:
    """Test unknown configs are 404s and unschedulable ones 400s."""
    missing = test_client.post(f"/api/v1/autopilot/configs/{uuid4()}/activate")
    assert missing.status_code == 404

    config = _add_config(repos, videos_per_week=500)
    invalid = test_client.post(f"/api/v1/autopilot/configs/{config.id}/activate")
    assert invalid.status_code == 400
    assert "at most 168" in invalid.json()["detail"]


def test_pool_stats(test_client: TestClient, repos) -> None:
    """Test the rotation pool summary."""
    store_id = uuid4()
    repos.products.add(Product(store_id=store_id, title="A", use_count=2))
    repos.products.add(Product(store_id=store_id, title="B"))
    repos.products.add(Product(store_id=store_id, title="C", is_active=False))

    response = test_client.get(f"/api/v1/autopilot/stores/{store_id}/pool")

    assert response.status_code == 200
    assert response.json() == {
        "store_id": str(store_id),
        "total": 3,
        "active": 2,
        "used": 1,
        "unused": 1,
        "total_use_count": 2,
        "min_use_count": 0,
    }
