from collections.abc import Callable

from loguru import logger
from serial.tools import list_ports

def list_serial_ports() -> list[str]:
    """
    List serial port device paths on this machine.

    Returns:
        Device paths such as /dev/ttyUSB0, sorted
    """
    return sorted(port_info.device for port_info in list_ports.comports())

def prompt_for_port(ports: list[str], input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print) -> str:
    """
    Ask the user which serial port to use.

    Args:
        ports: Candidate device paths
        input_fn: Reads one answer from the user
        output_fn: Shows one line to the user

    Returns:
        Selected device path

    Raises:
        RuntimeError: If there are no ports to choose from
    """
    if not ports:
        raise RuntimeError("No serial ports found")

    output_fn("Specify which port you want to use?")
    for index, port in enumerate(ports, start=1):
        output_fn(f"  {index}) {port}")

    while True:
        answer = input_fn(f"Port [1-{len(ports)}]: ").strip()
        if answer in ports:
            return answer
        try:
            choice = int(answer)
        except ValueError:
            choice = 0
        if 1 <= choice <= len(ports):
            return ports[choice - 1]
        logger.warning(f"Invalid port selection: {answer!r}")
