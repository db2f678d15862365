import enum

import pydantic

class Axis(str, enum.Enum):
    X = "X"
    Y = "Y"
    Z = "Z"

AXIS_ORDER: tuple[Axis, ...] = (Axis.X, Axis.Y, Axis.Z)

class AxisIntent(enum.IntEnum):
    NEGATIVE = -1
    ZERO = 0
    POSITIVE = 1

class SpeedTier(str, enum.Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class SessionState(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"

class JogIntent(pydantic.BaseModel):
    x: AxisIntent = AxisIntent.ZERO
    y: AxisIntent = AxisIntent.ZERO
    z: AxisIntent = AxisIntent.ZERO
    tier: SpeedTier = SpeedTier.NONE

    model_config = {"frozen": True}

    def for_axis(self, axis: Axis) -> AxisIntent:
        return getattr(self, axis.value.lower())

    @property
    def is_moving(self) -> bool:
        return any(self.for_axis(axis) != AxisIntent.ZERO for axis in AXIS_ORDER)

class MotionParameters(pydantic.BaseModel):
    feed_rate: float = pydantic.Field(0, ge=0, description="Jog feed rate in mm/min")
    step_distance: float = pydantic.Field(0, ge=0, description="Distance per jog step in mm")

    model_config = {"frozen": True}

    @property
    def is_zero(self) -> bool:
        return self.feed_rate == 0 or self.step_distance == 0

class JogSnapshot(pydantic.BaseModel):
    state: SessionState
    repeat_count: int
    pending_ack: bool
    intent: JogIntent
    motion: MotionParameters
    commands_sent: int = 0
    cancels_sent: int = 0
    acks_received: int = 0
