from pendant.schemas.jog import Axis

JOG_PREFIX = "$J=G91 G21"

# Realtime jog cancel. GRBL acts on it immediately without queueing; the
# trailing newline makes cncjs flush the write.
JOG_CANCEL = "\x85\n"

ACK_TOKENS: tuple[str, ...] = ("ok", "error")

# Decimal places sent for distances and feed rates; anything smaller reads as 0.
NUMBER_PRECISION = 4
MIN_NUMBER = 10 ** -NUMBER_PRECISION

def format_number(value: float) -> str:
    """
    Render a distance or feed rate without trailing zeros (1, 0.1, -10, 500).

    Args:
        value: Number to render

    Returns:
        Compact decimal string accepted by GRBL
    """
    text = f"{value:.{NUMBER_PRECISION}f}".rstrip("0").rstrip(".")
    if text in ("", "-", "-0"):
        return "0"
    return text

def format_jog_command(axis: Axis, distance: float, feed_rate: float) -> str:
    """
    Build a relative, millimetre jog command for a single axis.

    Args:
        axis: Axis to move
        distance: Signed distance in mm
        feed_rate: Feed rate in mm/min

    Returns:
        Command line such as "$J=G91 G21 X1 F500\\n"
    """
    return f"{JOG_PREFIX} {axis.value}{format_number(distance)} F{format_number(feed_rate)}\n"

def is_ack(line: str) -> bool:
    """
    Check whether a line read back from the controller terminates a command.

    Matching is a case-sensitive substring test, so "ok" and "error:9" both
    count while "ALARM:1" or a status report do not.

    Args:
        line: Line read from the controller

    Returns:
        True if the line contains an acknowledgment token
    """
    return any(token in line for token in ACK_TOKENS)
