import pytest


@pytest.mark.asyncio
async def test_health(client):
    """Health endpoint answers 200 with the DB status in the body."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["db"] in {"ok", "error"}
    assert data["environment"] == "development"
