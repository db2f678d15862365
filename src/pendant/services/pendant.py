import threading

from loguru import logger

from pendant.modules import device
from pendant.modules.relay import CncjsRelay
from pendant.modules.scheduler import JogScheduler
from pendant.modules.scheduler import Ticker
from pendant.schemas.config import PendantConfig
from pendant.schemas.jog import JogSnapshot

class PendantService:
    """
    Wires the gamepad, the jog scheduler and the cncjs relay together.

    start() returns at once; a startup thread waits for the gamepad (until
    the discovery policy gives up or stop() is called), then connects to
    cncjs and starts the ticker. Nothing is retried after startup: a lost
    gamepad or relay is logged and jogging stops.
    """

    def __init__(self, config: PendantConfig, relay: CncjsRelay | None = None):
        self.config = config
        self.relay = relay if relay is not None else CncjsRelay(config)
        self.scheduler = JogScheduler(self.relay.write, speed_table=config.speeds)
        self.ticker = Ticker(self.scheduler, interval=config.tick_interval)
        self.reader: device.HidReader | None = None
        self.error: Exception | None = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._started = threading.Event()
        self._thread: threading.Thread | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self.ticker.running

    def start(self) -> None:
        """
        Begin startup on a background thread and return immediately.
        """
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._started.clear()
        self._closed = False
        self.error = None
        self._thread = threading.Thread(target=self._run_startup, name="pendant-startup", daemon=True)
        self._thread.start()

    def wait_started(self, timeout: float | None = None) -> bool:
        """
        Wait for startup to finish, successfully or not.

        Args:
            timeout: Seconds to wait, None to wait indefinitely

        Returns:
            True if startup has finished; check running and error for the outcome
        """
        return self._started.wait(timeout)

    def connect(self) -> None:
        """
        Find and open the gamepad, connect to cncjs and start jogging. Blocks.

        Raises:
            DeviceUnavailable: If the gamepad is not found, cannot be opened,
                or the search is cancelled by stop()
            RelayError: If cncjs cannot be reached or cannot open the serial port
        """
        policy = device.RetryPolicy(attempts=self.config.discovery_attempts, interval=self.config.discovery_interval)
        device.wait_for_device(self.config.vendor_id, self.config.product_id, policy, self._stop_event)

        gamepad = device.open_device(self.config.vendor_id, self.config.product_id)
        with self._lock:
            if self._closed:
                gamepad.close()
                return
            self.reader = device.HidReader(gamepad, self.scheduler.post_report)
            self.reader.start()

        self.relay.on_line(self.scheduler.post_line)
        self.relay.connect()

        with self._lock:
            if self._closed:
                self.relay.close()
                return
            self.ticker.start()
        logger.info(f"Jogging {self.config.port} through cncjs at {self.config.socket_url}")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        self._close()

    def snapshot(self) -> JogSnapshot:
        return self.scheduler.snapshot()

    def _run_startup(self) -> None:
        try:
            self.connect()
        except Exception as e:
            self.error = e
            if self._stop_event.is_set():
                logger.info(f"Pendant startup abandoned: {e}")
            else:
                logger.error(f"Failed to start pendant: {e}")
            self._close()
        finally:
            self._started.set()

    def _close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.ticker.stop()
            if self.reader is not None:
                self.reader.stop()
                self.reader = None
            self.relay.close()
