"""
Decoding of the gamepad's HID input report.

Byte 5 carries the D-pad as a 3-bit hat value in bits 0-2 and the three
speed buttons in bits 4-6. Byte 6 carries the two buttons used for Z.
"""

from collections.abc import Sequence

from pendant.schemas.jog import Axis
from pendant.schemas.jog import AxisIntent
from pendant.schemas.jog import JogIntent
from pendant.schemas.jog import SpeedTier

HAT_BYTE = 5
HAT_MASK = 0b0000111

# Hat value -> (axis, intent). X and Y read the same field; any value not
# listed here leaves both axes at zero.
HAT_DIRECTIONS: dict[int, tuple[Axis, AxisIntent]] = {
    0: (Axis.Y, AxisIntent.POSITIVE),
    2: (Axis.X, AxisIntent.POSITIVE),
    4: (Axis.Y, AxisIntent.NEGATIVE),
    6: (Axis.X, AxisIntent.NEGATIVE),
}

Z_BYTE = 6
Z_POSITIVE_BIT = 1
Z_NEGATIVE_BIT = 3

SPEED_BYTE = 5

# Checked in order; the first set flag wins.
SPEED_TIER_FLAGS: tuple[tuple[SpeedTier, int], ...] = (
    (SpeedTier.LOW, 4),
    (SpeedTier.MEDIUM, 5),
    (SpeedTier.HIGH, 6),
)

def bit_is_set(value: int, bit: int) -> bool:
    return bool(value >> bit & 1)

def decode_hat(report: Sequence[int]) -> dict[Axis, AxisIntent]:
    intents = {Axis.X: AxisIntent.ZERO, Axis.Y: AxisIntent.ZERO}
    direction = HAT_DIRECTIONS.get(report[HAT_BYTE] & HAT_MASK)
    if direction is not None:
        axis, intent = direction
        intents[axis] = intent
    return intents

def decode_z(report: Sequence[int]) -> AxisIntent:
    positive = bit_is_set(report[Z_BYTE], Z_POSITIVE_BIT)
    negative = bit_is_set(report[Z_BYTE], Z_NEGATIVE_BIT)
    if positive and not negative:
        return AxisIntent.POSITIVE
    if negative and not positive:
        return AxisIntent.NEGATIVE
    return AxisIntent.ZERO

def decode_speed_tier(report: Sequence[int]) -> SpeedTier:
    for tier, bit in SPEED_TIER_FLAGS:
        if bit_is_set(report[SPEED_BYTE], bit):
            return tier
    return SpeedTier.NONE

def decode_report(report: Sequence[int]) -> JogIntent:
    """
    Decode one raw input report into jog intent.

    With no speed button held every axis is forced to zero, whatever the
    D-pad and Z buttons say. Short or malformed reports are not handled.

    Args:
        report: Raw report bytes (bytes or list of ints as returned by hidapi)

    Returns:
        JogIntent with X, Y, Z intent and the selected speed tier
    """
    tier = decode_speed_tier(report)
    if tier == SpeedTier.NONE:
        return JogIntent(tier=tier)

    hat = decode_hat(report)
    return JogIntent(
        x=hat[Axis.X],
        y=hat[Axis.Y],
        z=decode_z(report),
        tier=tier
    )
