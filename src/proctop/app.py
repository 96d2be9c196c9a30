"""proctop - Main Textual application."""

import logging
import sys
import time

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.logging import TextualHandler
from textual.timer import Timer
from textual.widgets import Static

from proctop.controller import Command, InputController, InputState, ProcessTerminator, Terminator
from proctop.render import CharGrid, Renderer
from proctop.session import MonitorSession

logger = logging.getLogger(__name__)


class ProctopApp(App, inherit_bindings=False):
    """
    Main proctop application and control loop.

    Each tick samples, renders the full frame into a character grid and
    pushes it to a single widget, then schedules the next tick for whatever
    is left of the target interval. Keys are handled as soon as they arrive.
    While a pid is being typed no tick is scheduled.
    """

    TITLE = "proctop"
    SUB_TITLE = "Python Process Monitor"

    # Every other key goes to the input controller
    BINDINGS = [Binding("ctrl+c", "quit", show=False, priority=True)]
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        layout: vertical;
        overflow: hidden;
    }

    #grid {
        width: 1fr;
        height: 1fr;
    }
    """

    def __init__(
        self,
        session: MonitorSession | None = None,
        terminator: Terminator | None = None,
    ) -> None:
        """
        Initialize the ProctopApp.

        Args:
            session: Monitoring session. Defaults to one reading the live system.
            terminator: Termination capability. Defaults to psutil.
        """
        super().__init__()
        self._session = session or MonitorSession()
        self._renderer = Renderer(self._session.settings)
        self._grid = CharGrid()
        self._controller = InputController(self._session, terminator or ProcessTerminator(), self)
        self._sample_timer: Timer | None = None

    @property
    def session(self) -> MonitorSession:
        """Get the monitoring session."""
        return self._session

    @property
    def controller(self) -> InputController:
        """Get the input controller."""
        return self._controller

    @property
    def grid(self) -> CharGrid:
        """Get the character grid holding the last frame."""
        return self._grid

    @property
    def sampling(self) -> bool:
        """Check if the next sample is scheduled."""
        return self._sample_timer is not None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static("", id="grid", markup=False)

    def on_mount(self) -> None:
        """Take the first sample when the app is mounted."""
        logger.info("monitoring started, target interval %.1fs", self._session.cadence.target_interval)
        self._tick()

    def on_key(self, event: events.Key) -> None:
        """Route a key press to the input controller."""
        key = event.character if event.is_printable and event.character else event.key
        command = self._controller.handle_key(key)
        if command is Command.QUIT:
            self._stop_sampling()
            logger.info("monitoring stopped")
            self.exit()
        elif command is Command.REDRAW:
            self._draw()

    def set_line_mode(self, enabled: bool) -> None:
        """Entry/exit action of COMMAND_ENTRY: show the cursor and suspend sampling."""
        self._grid.cursor_visible = enabled
        if enabled:
            self._stop_sampling()
        else:
            self._schedule(0.0)

    def _tick(self) -> None:
        self._sample_timer = None
        if self._controller.state is InputState.COMMAND_ENTRY:
            return
        started = time.monotonic()
        self._session.sample()
        self._draw()
        self._schedule(self._session.cadence.remaining(time.monotonic() - started))

    def _schedule(self, delay: float) -> None:
        self._stop_sampling()
        self._sample_timer = self.set_timer(delay, self._tick)

    def _stop_sampling(self) -> None:
        if self._sample_timer is not None:
            self._sample_timer.stop()
            self._sample_timer = None

    def _draw(self) -> None:
        size = self.size
        if (size.height, size.width) != (self._grid.rows, self._grid.cols):
            self._grid.resize(size.height, size.width)
        frame = self._renderer.render(self._grid, self._session.last_frame, self._controller.prompt)
        self.query_one("#grid", Static).update(frame)


def main() -> None:
    """Entry point for proctop application."""
    logging.basicConfig(level=logging.INFO, handlers=[TextualHandler()])
    app = ProctopApp()
    app.run()
    sys.exit(app.return_code or 0)


if __name__ == "__main__":
    main()
