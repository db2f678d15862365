import threading
from collections.abc import Callable

import hid
import pydantic
from loguru import logger

from pendant.modules.report import decode_report
from pendant.schemas.jog import JogIntent

GAMEPAD_VENDOR_ID = 0x0810
GAMEPAD_PRODUCT_ID = 0x0001

READ_SIZE = 64
READ_TIMEOUT_MS = 200

class DeviceUnavailable(RuntimeError):
    pass

class DeviceIOError(RuntimeError):
    pass

class RetryPolicy(pydantic.BaseModel):
    attempts: int | None = pydantic.Field(None, ge=1, description="Number of lookups before giving up, None to wait forever")
    interval: float = pydantic.Field(5.0, ge=0, description="Seconds between lookups")

def find_device(vendor_id: int = GAMEPAD_VENDOR_ID, product_id: int = GAMEPAD_PRODUCT_ID) -> dict | None:
    """
    Look for a connected HID device.

    Args:
        vendor_id: USB vendor ID
        product_id: USB product ID

    Returns:
        hidapi device info dict for the first match, None if not connected
    """
    devices = hid.enumerate(vendor_id, product_id)
    if not devices:
        return None
    return devices[0]

def wait_for_device(
    vendor_id: int = GAMEPAD_VENDOR_ID,
    product_id: int = GAMEPAD_PRODUCT_ID,
    policy: RetryPolicy | None = None,
    stop_event: threading.Event | None = None
) -> dict:
    """
    Poll for the gamepad until it shows up.

    Args:
        vendor_id: USB vendor ID
        product_id: USB product ID
        policy: How many times to look and how long to wait between lookups
        stop_event: Set from another thread to abandon the wait

    Returns:
        hidapi device info dict

    Raises:
        DeviceUnavailable: If the policy's attempts run out or the wait is cancelled
    """
    policy = policy or RetryPolicy()
    stop_event = stop_event or threading.Event()

    logger.info(f"Searching for gamepad {vendor_id:04x}:{product_id:04x}...")
    attempt = 0
    while True:
        attempt += 1
        info = find_device(vendor_id, product_id)
        if info is not None:
            logger.info(f"Gamepad connected: {info.get('product_string') or info.get('path')}")
            return info

        if policy.attempts is not None and attempt >= policy.attempts:
            raise DeviceUnavailable(f"Gamepad {vendor_id:04x}:{product_id:04x} not found after {attempt} attempts")

        logger.debug(f"Gamepad not found, retrying in {policy.interval}s")
        if stop_event.wait(policy.interval):
            raise DeviceUnavailable("Gamepad search cancelled")

def open_device(vendor_id: int = GAMEPAD_VENDOR_ID, product_id: int = GAMEPAD_PRODUCT_ID) -> hid.device:
    """
    Open the gamepad for reading.

    Raises:
        DeviceUnavailable: If the device cannot be opened
    """
    device = hid.device()
    try:
        device.open(vendor_id, product_id)
    except (OSError, IOError) as e:
        raise DeviceUnavailable(f"Failed to open gamepad {vendor_id:04x}:{product_id:04x}: {e}")
    return device

class HidReader:
    """
    Reads input reports on a background thread and hands each decoded
    JogIntent to on_report.

    A read error ends the thread; it is logged and not reconnected.
    """

    def __init__(self, device: hid.device, on_report: Callable[[JogIntent], None], timeout_ms: int = READ_TIMEOUT_MS):
        self.device = device
        self.on_report = on_report
        self.timeout_ms = timeout_ms
        self.error: DeviceIOError | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="hid-reader", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        try:
            self.device.close()
        except Exception as e:
            logger.error(f"Error closing gamepad: {e}")

    def read_once(self) -> JogIntent | None:
        """
        Read and decode a single report.

        Returns:
            Decoded intent, None if the read timed out with no data

        Raises:
            DeviceIOError: If the device read fails
        """
        try:
            data = self.device.read(READ_SIZE, self.timeout_ms)
        except (OSError, IOError, ValueError) as e:
            raise DeviceIOError(f"Gamepad read failed: {e}")
        if not data:
            return None
        intent = decode_report(data)
        self.on_report(intent)
        return intent

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.read_once()
            except DeviceIOError as e:
                logger.error(str(e))
                self.error = e
                return
