import pytest
from unittest.mock import MagicMock

import fastapi
from fastapi.testclient import TestClient

from pendant import utils
from pendant.modules.gate import FlowControlGate
from pendant.modules.scheduler import JogScheduler
from pendant.routers.health import factory as health_factory
from pendant.routers.jog import factory as jog_factory
from pendant.schemas.config import PendantConfig
from pendant.schemas.jog import AxisIntent
from pendant.schemas.jog import JogIntent
from pendant.schemas.jog import SpeedTier

def make_report(hat: int = 0b111, z_positive: bool = False, z_negative: bool = False, low: bool = False, medium: bool = False, high: bool = False) -> list[int]:
    report = [0] * 8
    report[5] = hat & 0b111
    report[5] |= int(low) << 4 | int(medium) << 5 | int(high) << 6
    report[6] = int(z_positive) << 1 | int(z_negative) << 3
    return report

def intent(x: int = 0, y: int = 0, z: int = 0, tier: SpeedTier = SpeedTier.MEDIUM) -> JogIntent:
    return JogIntent(x=AxisIntent(x), y=AxisIntent(y), z=AxisIntent(z), tier=tier)

@pytest.fixture
def sent():
    return []

@pytest.fixture
def gate():
    return FlowControlGate()

@pytest.fixture
def scheduler(sent, gate):
    utils.setup_loguru()
    return JogScheduler(sent.append, gate=gate)

@pytest.fixture
def config():
    return PendantConfig(port="/dev/ttyUSB0", secret="test-secret", discovery_attempts=1, discovery_interval=0)

@pytest.fixture
def app(scheduler):
    utils.setup_loguru()

    app = fastapi.FastAPI()

    pendant_mock = MagicMock()
    pendant_mock.scheduler = scheduler
    pendant_mock.snapshot.side_effect = scheduler.snapshot

    app.state.pendant = pendant_mock

    app.include_router(health_factory(app))
    app.include_router(jog_factory(app))

    return app

@pytest.fixture
def client(app: fastapi.FastAPI):
    return TestClient(app)
