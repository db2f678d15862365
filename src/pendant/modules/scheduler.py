"""
Jog scheduling state machine.

The HID reader and the relay's read handler never touch scheduler state
directly: they post messages to the scheduler's inbox, and the ticker thread
drains the inbox at the start of every tick. That keeps one writer per field:

- reports replace the latest JogIntent as a whole, so a tick never sees an
  axis from one report and a speed tier from another
- the ticker owns the session state and repeat count and is the only caller
  of the command sink
- acknowledgments clear the flow-control gate, the ticker sets it

Only one command is ever in flight. When more than one axis is active in the
same tick the first axis in X, Y, Z order takes the gate and the others are
skipped until a later tick, so simultaneous multi-axis jogging advances one
axis per acknowledged command.
"""

import enum
import queue
import threading
import time
from collections.abc import Callable

from loguru import logger

from pendant.modules import grbl
from pendant.modules.gate import FlowControlGate
from pendant.modules.speeds import DEFAULT_SPEED_TABLE
from pendant.modules.speeds import DEFAULT_TICK_INTERVAL
from pendant.modules.speeds import SpeedTable
from pendant.modules.speeds import motion_parameters
from pendant.schemas.jog import AXIS_ORDER
from pendant.schemas.jog import AxisIntent
from pendant.schemas.jog import JogIntent
from pendant.schemas.jog import JogSnapshot
from pendant.schemas.jog import SessionState

CommandSink = Callable[[str], None]

class MessageKind(enum.Enum):
    REPORT = "report"
    LINE = "line"

class JogScheduler:
    def __init__(self, sink: CommandSink, gate: FlowControlGate | None = None, speed_table: SpeedTable = DEFAULT_SPEED_TABLE):
        self.sink = sink
        self.gate = gate if gate is not None else FlowControlGate()
        self.speed_table = speed_table

        self.intent = JogIntent()
        self.state = SessionState.IDLE
        self.repeat_count = 0

        self.commands_sent = 0
        self.cancels_sent = 0
        self.acks_received = 0

        self._inbox: queue.Queue[tuple[MessageKind, JogIntent | str]] = queue.Queue()
        self._lock = threading.Lock()

    def post_report(self, intent: JogIntent) -> None:
        """
        Queue a freshly decoded report. Safe to call from the HID reader thread.

        Args:
            intent: Decoded intent for one complete report
        """
        self._inbox.put((MessageKind.REPORT, intent))

    def post_line(self, line: str) -> None:
        """
        Queue a line read back from the controller. Safe to call from the relay thread.

        Args:
            line: Raw line from the controller's serial output
        """
        self._inbox.put((MessageKind.LINE, line))

    def drain_inbox(self) -> None:
        while True:
            try:
                kind, payload = self._inbox.get_nowait()
            except queue.Empty:
                return
            if kind == MessageKind.REPORT:
                self.intent = payload
            elif self.gate.on_line(payload):
                self.acks_received += 1

    def tick(self) -> list[str]:
        """
        Run one scheduling cycle.

        Returns immediately while a command is awaiting acknowledgment; the
        tick is dropped, not deferred. Otherwise sends at most one jog step,
        and on release of a held jog sends the realtime jog cancel.

        Returns:
            Commands handed to the sink during this tick

        Raises:
            Exception: Whatever the sink raised; the gate is reopened and the
                command is not retried
        """
        with self._lock:
            self.drain_inbox()

            if self.gate.pending:
                return []

            sent: list[str] = []
            intent = self.intent
            motion = motion_parameters(intent.tier, self.speed_table)

            if not motion.is_zero and intent.is_moving:
                for axis in AXIS_ORDER:
                    direction = intent.for_axis(axis)
                    if direction == AxisIntent.ZERO:
                        continue
                    if not self.gate.try_acquire():
                        logger.trace(f"Gate closed, skipping {axis.value} this tick")
                        continue
                    command = grbl.format_jog_command(axis, int(direction) * motion.step_distance, motion.feed_rate)
                    self._send(command)
                    self.state = SessionState.ACTIVE
                    self.repeat_count += 1
                    self.commands_sent += 1
                    sent.append(command)

            if self.state == SessionState.ACTIVE and not intent.is_moving:
                logger.debug(f"Jog released after {self.repeat_count} step(s)")
                repeat_count = self.repeat_count
                self.state = SessionState.IDLE
                self.repeat_count = 0
                # A single tap is left to finish its one step untouched.
                if repeat_count > 1 and self.gate.try_acquire():
                    self._send(grbl.JOG_CANCEL)
                    self.cancels_sent += 1
                    sent.append(grbl.JOG_CANCEL)

            return sent

    def _send(self, command: str) -> None:
        try:
            self.sink(command)
        except Exception:
            self.gate.release()
            raise
        logger.debug(f"Sent {command!r}")

    def snapshot(self) -> JogSnapshot:
        with self._lock:
            return JogSnapshot(
                state=self.state,
                repeat_count=self.repeat_count,
                pending_ack=self.gate.pending,
                intent=self.intent,
                motion=motion_parameters(self.intent.tier, self.speed_table),
                commands_sent=self.commands_sent,
                cancels_sent=self.cancels_sent,
                acks_received=self.acks_received
            )

class Ticker:
    """
    Calls JogScheduler.tick() every interval seconds on a daemon thread.

    Ticks that cannot run on time are skipped rather than run back to back.
    """

    def __init__(self, scheduler: JogScheduler, interval: float = DEFAULT_TICK_INTERVAL):
        self.scheduler = scheduler
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="jog-ticker", daemon=True)
        self._thread.start()
        logger.info(f"Jog ticker started ({self.interval * 1000:.0f} ms)")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Jog ticker stopped")

    def _run(self) -> None:
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.scheduler.tick()
            except Exception as e:
                logger.error(f"Jog tick failed: {e}")
            next_tick += self.interval
            now = time.monotonic()
            if next_tick < now:
                next_tick = now
            self._stop_event.wait(next_tick - now)
