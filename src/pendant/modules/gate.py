import threading

from loguru import logger

from pendant.modules import grbl

class FlowControlGate:
    """
    Allows one command in flight to the controller at a time.

    The ticker sets the pending flag through try_acquire() and the
    acknowledgment path clears it through release(). A lost acknowledgment
    leaves the gate closed until another one arrives; there is no timeout.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    def try_acquire(self) -> bool:
        """
        Claim the gate for exactly one command.

        Returns:
            True if the caller may send one command now, False if a command
            is still awaiting acknowledgment
        """
        with self._lock:
            if self._pending:
                return False
            self._pending = True
            return True

    def release(self) -> bool:
        """
        Clear the pending flag.

        Returns:
            True if a pending command was acknowledged, False if the gate was
            already clear
        """
        with self._lock:
            was_pending = self._pending
            self._pending = False
            return was_pending

    def on_line(self, line: str) -> bool:
        """
        Handle a line read back from the controller.

        Args:
            line: Line from the controller's serial output

        Returns:
            True if the line was an acknowledgment that cleared a pending command
        """
        if grbl.is_ack(line):
            released = self.release()
            if not released:
                logger.debug(f"Acknowledgment with no command pending: {line.strip()}")
            return released
        logger.info(f"Unhandled response: {line.strip()}")
        return False
