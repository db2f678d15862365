"""
Speed tier to jog parameter lookup.

Step distance and feed rate are matched per tier so that repeated jogging is
smooth: a step requested every tick must arrive before the axis has started
decelerating at the end of the previous one. For example 1 mm requested at
10 Hz is 10 mm/s, while 500 mm/min caps the axis at 8.33 mm/s, so the planner
always has the next step queued. Distance and feed scale together across
tiers to keep that relationship.
"""

import pydantic

from pendant.modules import grbl
from pendant.schemas.jog import MotionParameters
from pendant.schemas.jog import SpeedTier

DEFAULT_TICK_INTERVAL = 0.1

LOW_STEP_DISTANCE = 0.1
MEDIUM_STEP_DISTANCE = 1
HIGH_STEP_DISTANCE = 10

LOW_FEED_RATE = 50
MEDIUM_FEED_RATE = 500
HIGH_FEED_RATE = 5000

NO_MOTION = MotionParameters(feed_rate=0, step_distance=0)

class SpeedTable(pydantic.BaseModel):
    low: MotionParameters = MotionParameters(feed_rate=LOW_FEED_RATE, step_distance=LOW_STEP_DISTANCE)
    medium: MotionParameters = MotionParameters(feed_rate=MEDIUM_FEED_RATE, step_distance=MEDIUM_STEP_DISTANCE)
    high: MotionParameters = MotionParameters(feed_rate=HIGH_FEED_RATE, step_distance=HIGH_STEP_DISTANCE)

    model_config = {"frozen": True}

    @pydantic.field_validator("low", "medium", "high")
    @classmethod
    def check_nonzero(cls, value: MotionParameters) -> MotionParameters:
        if value.feed_rate < grbl.MIN_NUMBER or value.step_distance < grbl.MIN_NUMBER:
            raise ValueError(f"feed_rate and step_distance must both be at least {grbl.MIN_NUMBER:g}")
        return value

DEFAULT_SPEED_TABLE = SpeedTable()

def motion_parameters(tier: SpeedTier, table: SpeedTable = DEFAULT_SPEED_TABLE) -> MotionParameters:
    """
    Look up jog parameters for a speed tier.

    Args:
        tier: Speed tier selected on the gamepad
        table: Speed table to look the tier up in

    Returns:
        MotionParameters for the tier; zero feed and distance for SpeedTier.NONE
    """
    if tier == SpeedTier.NONE:
        return NO_MOTION
    return getattr(table, tier.value)
