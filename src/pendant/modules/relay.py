"""
Command sink backed by a cncjs server.

cncjs owns the serial port; this client authenticates with a JWT signed with
the server's secret, asks cncjs to open the controller's port, writes
commands through the `write` event and receives controller output through
`serialport:read`.
"""

import datetime
import json
import os
import re
import threading
from collections.abc import Callable
from pathlib import Path

import jwt
import pydantic
import socketio
from loguru import logger

from pendant.schemas.config import PendantConfig

CNCRC_PATH = Path.home() / ".cncrc"
SECRET_ENV = "CNCJS_SECRET"
TOKEN_PAYLOAD = {"id": "", "name": "cncjs-pendant"}
OPEN_TIMEOUT = 10.0

LIFETIME_UNITS: dict[str, float] = {
    "ms": 0.001,
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
    "y": 31557600, "year": 31557600, "years": 31557600,
}

LIFETIME_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$", re.IGNORECASE)

class RelayError(RuntimeError):
    pass

class RelayStore(pydantic.BaseModel):
    controller_state: dict = {}
    controller_settings: dict = {}
    sender_status: dict = {}

def parse_lifetime(lifetime: str | int | float) -> float:
    """
    Convert an access token lifetime to seconds.

    Args:
        lifetime: Seconds, or a time span string such as "30d", "12h", "2 days"

    Returns:
        Lifetime in seconds

    Raises:
        ValueError: If the string cannot be parsed
    """
    if isinstance(lifetime, (int, float)):
        return float(lifetime)
    match = LIFETIME_PATTERN.match(lifetime)
    if match is None:
        raise ValueError(f"Invalid access token lifetime: {lifetime!r}")
    value, unit = match.groups()
    unit = unit.lower() or "s"
    if unit not in LIFETIME_UNITS:
        raise ValueError(f"Unknown time unit in access token lifetime: {lifetime!r}")
    return float(value) * LIFETIME_UNITS[unit]

def resolve_secret(secret: str | None = None, cncrc_path: Path = CNCRC_PATH) -> str:
    """
    Find the cncjs secret.

    Args:
        secret: Secret given on the command line, used as-is when set
        cncrc_path: cncjs configuration file to read the secret from

    Returns:
        Secret string

    Raises:
        RelayError: If no secret is configured anywhere
    """
    if secret:
        return secret
    if os.environ.get(SECRET_ENV):
        return os.environ[SECRET_ENV]
    try:
        with open(cncrc_path, 'r') as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RelayError(f"No cncjs secret given and {cncrc_path} could not be read: {e}")
    if not config.get("secret"):
        raise RelayError(f"No secret found in {cncrc_path}")
    return config["secret"]

def generate_access_token(secret: str, lifetime: str | int | float = "30d") -> str:
    """
    Sign an access token for the cncjs socket.

    Args:
        secret: cncjs secret
        lifetime: Token lifetime, see parse_lifetime

    Returns:
        HS256 JWT
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = dict(TOKEN_PAYLOAD)
    payload["iat"] = now
    payload["exp"] = now + datetime.timedelta(seconds=parse_lifetime(lifetime))
    return jwt.encode(payload, secret, algorithm="HS256")

class CncjsRelay:
    def __init__(self, config: PendantConfig, client: socketio.Client | None = None):
        self.config = config
        self.client = client if client is not None else socketio.Client(reconnection=False)
        self.store = RelayStore()
        self.port_open = threading.Event()
        self.error: str | None = None
        self._line_handler: Callable[[str], None] | None = None

        self.client.on("connect", self._handle_connect)
        self.client.on("disconnect", self._handle_disconnect)
        self.client.on("serialport:open", self._handle_port_open)
        self.client.on("serialport:error", self._handle_port_error)
        self.client.on("serialport:read", self._handle_read)
        self.client.on("Grbl:state", self._handle_controller_state)
        self.client.on("Grbl:settings", self._handle_controller_settings)
        self.client.on("sender:status", self._handle_sender_status)

    def on_line(self, handler: Callable[[str], None]) -> None:
        self._line_handler = handler

    def connect(self, timeout: float = OPEN_TIMEOUT) -> None:
        """
        Connect to cncjs and wait for it to open the controller's serial port.

        Args:
            timeout: Seconds to wait for the port to open

        Raises:
            RelayError: If the secret is missing, the server is unreachable or
                the serial port cannot be opened
        """
        secret = resolve_secret(self.config.secret)
        token = generate_access_token(secret, self.config.access_token_lifetime)
        url = f"{self.config.socket_url}?token={token}"

        logger.info(f"Connecting to cncjs at {self.config.socket_url}...")
        try:
            self.client.connect(url, transports=["websocket"])
        except socketio.exceptions.ConnectionError as e:
            raise RelayError(f"Failed to connect to cncjs at {self.config.socket_url}: {e}")

        if not self.port_open.wait(timeout):
            raise RelayError(f"Timed out waiting for cncjs to open {self.config.port}")
        if self.error is not None:
            raise RelayError(self.error)

    def write(self, command: str) -> None:
        """
        Write a command to the controller through cncjs.

        Args:
            command: Command text including its trailing newline

        Raises:
            RelayError: If the serial port is not open
        """
        if not self.port_open.is_set() or self.error is not None:
            raise RelayError(f"Serial port {self.config.port} is not open")
        self.client.emit("write", (self.config.port, command))

    def close(self) -> None:
        self.port_open.clear()
        try:
            self.client.disconnect()
        except Exception as e:
            logger.error(f"Error disconnecting from cncjs: {e}")

    def _handle_connect(self) -> None:
        logger.info(f"Connected to cncjs at {self.config.socket_url}")
        self.client.emit("open", (self.config.port, {
            "baudrate": self.config.baudrate,
            "controllerType": self.config.controller_type.value
        }))

    def _handle_disconnect(self, *args) -> None:
        logger.info("Connection to cncjs closed")
        self.port_open.clear()

    def _handle_port_open(self, options: dict | None = None) -> None:
        options = options or {}
        logger.info(f"Connected to port \"{options.get('port', self.config.port)}\" (Baud rate: {options.get('baudrate', self.config.baudrate)})")
        self.error = None
        self.port_open.set()

    def _handle_port_error(self, options: dict | None = None) -> None:
        options = options or {}
        self.error = f"Error opening serial port \"{options.get('port', self.config.port)}\""
        logger.error(self.error)
        self.port_open.set()

    def _handle_read(self, data: str | None = None) -> None:
        line = (data or "").strip()
        if not line:
            return
        if self._line_handler is None:
            logger.info(line)
            return
        self._line_handler(line)

    def _handle_controller_state(self, state: dict) -> None:
        self.store.controller_state = state

    def _handle_controller_settings(self, settings: dict) -> None:
        self.store.controller_settings = settings

    def _handle_sender_status(self, status: dict) -> None:
        self.store.sender_status = status
