import enum

import pydantic

from pendant.modules.speeds import DEFAULT_TICK_INTERVAL
from pendant.modules.speeds import SpeedTable

class ControllerType(str, enum.Enum):
    GRBL = "Grbl"
    SMOOTHIE = "Smoothie"
    TINYG = "TinyG"

class PendantConfig(pydantic.BaseModel):
    port: str = pydantic.Field(..., description="Serial port of the motion controller, as known to cncjs")
    secret: str | None = pydantic.Field(None, description="cncjs secret; falls back to CNCJS_SECRET and ~/.cncrc")
    baudrate: int = pydantic.Field(115200, gt=0)
    socket_address: str = "localhost"
    socket_port: int = pydantic.Field(8000, gt=0, lt=65536)
    controller_type: ControllerType = ControllerType.GRBL
    access_token_lifetime: str = pydantic.Field("30d", description="Seconds or a time span string such as 30d or 12h")

    vendor_id: int = 0x0810
    product_id: int = 0x0001
    discovery_interval: float = pydantic.Field(5.0, ge=0)
    discovery_attempts: int | None = pydantic.Field(None, ge=1)

    tick_interval: float = pydantic.Field(DEFAULT_TICK_INTERVAL, gt=0)
    speeds: SpeedTable = SpeedTable()

    api_host: str = "127.0.0.1"
    api_port: int = pydantic.Field(8001, gt=0, lt=65536)
    log_level: str = "INFO"

    @property
    def socket_url(self) -> str:
        return f"ws://{self.socket_address}:{self.socket_port}"
