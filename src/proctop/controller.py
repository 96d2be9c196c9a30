"""Keyboard state machine for proctop."""

import logging
import re
from enum import Enum
from typing import Protocol

import psutil

from proctop.session import MonitorSession

logger = logging.getLogger(__name__)

ENTER = "enter"
BACKSPACE = "backspace"

MONITOR_PROMPT = "Enter command: "
PID_PROMPT = "Enter PID to kill: "
MAX_LINE = 31

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class InputState(Enum):
    """Input modes of the controller."""

    MONITOR = "monitor"
    COMMAND_ENTRY = "command_entry"


class Command(Enum):
    """What the control loop should do after a key."""

    NONE = "none"
    REDRAW = "redraw"
    QUIT = "quit"


class LineModeSwitch(Protocol):
    """Terminal side of COMMAND_ENTRY: echo, visible cursor and blocking reads."""

    def set_line_mode(self, enabled: bool) -> None: ...


class Terminator(Protocol):
    """Delivers a termination request to a pid."""

    def terminate(self, pid: int) -> bool: ...


class ProcessTerminator:
    """Sends SIGTERM (TerminateProcess on Windows) through psutil without waiting."""

    def terminate(self, pid: int) -> bool:
        """Returns True if the OS accepted the request."""
        try:
            psutil.Process(pid).terminate()
        except (psutil.Error, OverflowError, ValueError) as exc:
            logger.warning("terminate %s failed: %s", pid, exc)
            return False
        logger.info("sent SIGTERM to %s", pid)
        return True


def parse_pid(text: str) -> int:
    """Parse like C atoi: leading blanks, optional sign, digits. Anything else is 0."""
    match = _LEADING_INT.match(text)
    if match is None:
        return 0
    return int(match.group(1))


class InputController:
    """
    Two-state machine routing keys to quit, sort and kill commands.

    In MONITOR, q quits, s cycles the sort mode and k enters COMMAND_ENTRY.
    Entering COMMAND_ENTRY switches the terminal to line mode; leaving it
    switches back. Inside COMMAND_ENTRY keys build a pid line until enter.
    A positive pid is handed to the terminator and the outcome stays on
    screen until the next key.
    """

    def __init__(
        self,
        session: MonitorSession,
        terminator: Terminator,
        terminal: LineModeSwitch,
    ) -> None:
        self._session = session
        self._terminator = terminator
        self._terminal = terminal
        self._state = InputState.MONITOR
        self._buffer = ""
        self._outcome: str | None = None

    @property
    def state(self) -> InputState:
        """Get the current input state."""
        return self._state

    @property
    def awaiting_acknowledgement(self) -> bool:
        """Check if a kill outcome is waiting for a key."""
        return self._outcome is not None

    @property
    def prompt(self) -> str:
        """Text for the prompt line."""
        if self._state is InputState.MONITOR:
            return MONITOR_PROMPT
        if self._outcome is not None:
            return self._outcome
        return PID_PROMPT + self._buffer

    def handle_key(self, key: str) -> Command:
        """
        Feed one key to the state machine.

        Args:
            key: A single printable character, or a key name such as "enter".
        """
        if self._state is InputState.MONITOR:
            return self._handle_monitor_key(key)
        if self._outcome is not None:
            self._leave_command_entry()
            return Command.REDRAW
        return self._handle_line_key(key)

    def _handle_monitor_key(self, key: str) -> Command:
        if key in ("q", "Q"):
            return Command.QUIT
        if key in ("s", "S"):
            self._session.cycle_sort()
            return Command.REDRAW
        if key in ("k", "K"):
            self._enter_command_entry()
            return Command.REDRAW
        return Command.NONE

    def _handle_line_key(self, key: str) -> Command:
        if key == ENTER:
            self._submit(self._buffer)
        elif key == BACKSPACE:
            self._buffer = self._buffer[:-1]
        elif len(key) == 1 and key.isprintable():
            if len(self._buffer) < MAX_LINE:
                self._buffer += key
        else:
            return Command.NONE
        return Command.REDRAW

    def _submit(self, line: str) -> None:
        pid = parse_pid(line)
        if pid <= 0:
            logger.debug("ignoring kill input %r", line)
            self._leave_command_entry()
            return
        if self._terminator.terminate(pid):
            self._outcome = f"Sent SIGTERM to {pid}. Press any key to continue..."
        else:
            self._outcome = f"Failed to kill {pid} (check permissions). Press any key to continue..."

    def _enter_command_entry(self) -> None:
        self._state = InputState.COMMAND_ENTRY
        self._buffer = ""
        self._outcome = None
        self._terminal.set_line_mode(True)

    def _leave_command_entry(self) -> None:
        self._state = InputState.MONITOR
        self._buffer = ""
        self._outcome = None
        self._terminal.set_line_mode(False)
