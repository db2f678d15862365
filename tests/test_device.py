import threading

import pytest
from unittest.mock import MagicMock
from unittest.mock import patch

from conftest import make_report
from pendant.modules import device
from pendant.schemas.jog import AxisIntent
from pendant.schemas.jog import SpeedTier

GAMEPAD_INFO = {"vendor_id": 0x0810, "product_id": 0x0001, "path": b"1-1:1.0", "product_string": "USB Gamepad"}

@pytest.fixture
def hid_mock():
    with patch.object(device, "hid") as mock:
        yield mock

def test_find_device(hid_mock):
    hid_mock.enumerate.return_value = [GAMEPAD_INFO]
    assert device.find_device() == GAMEPAD_INFO
    hid_mock.enumerate.assert_called_once_with(0x0810, 0x0001)

def test_find_device_missing(hid_mock):
    hid_mock.enumerate.return_value = []
    assert device.find_device() is None

def test_wait_for_device_retries(hid_mock):
    """
    Test that discovery polls until the gamepad appears.
    """
    hid_mock.enumerate.side_effect = [[], [], [GAMEPAD_INFO]]
    policy = device.RetryPolicy(attempts=5, interval=0)
    assert device.wait_for_device(policy=policy) == GAMEPAD_INFO
    assert hid_mock.enumerate.call_count == 3

def test_wait_for_device_gives_up(hid_mock):
    hid_mock.enumerate.return_value = []
    policy = device.RetryPolicy(attempts=3, interval=0)
    with pytest.raises(device.DeviceUnavailable):
        device.wait_for_device(policy=policy)
    assert hid_mock.enumerate.call_count == 3

def test_wait_for_device_cancelled(hid_mock):
    hid_mock.enumerate.return_value = []
    stop_event = threading.Event()
    stop_event.set()
    with pytest.raises(device.DeviceUnavailable, match="cancelled"):
        device.wait_for_device(policy=device.RetryPolicy(interval=10), stop_event=stop_event)
    assert hid_mock.enumerate.call_count == 1

def test_open_device(hid_mock):
    gamepad = device.open_device()
    assert gamepad is hid_mock.device.return_value
    gamepad.open.assert_called_once_with(0x0810, 0x0001)

def test_open_device_failure(hid_mock):
    hid_mock.device.return_value.open.side_effect = OSError("open failed")
    with pytest.raises(device.DeviceUnavailable):
        device.open_device()

def test_reader_decodes_report():
    gamepad = MagicMock()
    gamepad.read.return_value = make_report(hat=2, high=True)
    received = []
    reader = device.HidReader(gamepad, received.append)

    decoded = reader.read_once()

    assert decoded.x == AxisIntent.POSITIVE
    assert decoded.tier == SpeedTier.HIGH
    assert received == [decoded]

def test_reader_timeout_returns_none():
    gamepad = MagicMock()
    gamepad.read.return_value = []
    received = []
    reader = device.HidReader(gamepad, received.append)
    assert reader.read_once() is None
    assert received == []

def test_reader_stops_on_io_error():
    """
    Test that a read failure ends the reader without reconnecting.
    """
    gamepad = MagicMock()
    gamepad.read.side_effect = [make_report(hat=0, low=True), OSError("read error")]
    received = []
    reader = device.HidReader(gamepad, received.append)

    reader.start()
    reader._thread.join(2.0)

    assert not reader.running
    assert isinstance(reader.error, device.DeviceIOError)
    assert len(received) == 1
    assert received[0].y == AxisIntent.POSITIVE

def test_reader_stop_closes_device():
    gamepad = MagicMock()
    gamepad.read.return_value = []
    reader = device.HidReader(gamepad, lambda intent: None, timeout_ms=1)
    reader.start()
    reader.stop()
    assert not reader.running
    gamepad.close.assert_called_once()
