import fastapi
import pytest
from fastapi.testclient import TestClient

from conftest import intent
from pendant.routers.jog import factory as jog_factory
from pendant.schemas.jog import SpeedTier

def test_jog_state_idle(client):
    response = client.get("/jog/state")
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "idle"
    assert data["repeat_count"] == 0
    assert data["pending_ack"] is False
    assert data["intent"]["tier"] == "none"

def test_jog_state_active(client, scheduler):
    scheduler.post_report(intent(x=1, tier=SpeedTier.HIGH))
    scheduler.tick()

    response = client.get("/jog/state")
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "active"
    assert data["repeat_count"] == 1
    assert data["pending_ack"] is True
    assert data["intent"]["x"] == 1
    assert data["motion"] == {"feed_rate": 5000, "step_distance": 10}
    assert data["commands_sent"] == 1

def test_jog_state_without_service():
    app = fastapi.FastAPI()
    app.include_router(jog_factory(app))
    response = TestClient(app).get("/jog/state")
    assert response.status_code == 503
