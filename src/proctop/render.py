"""Frame layout on a fixed-size character grid."""

from typing import Protocol

from proctop.session import Frame, MonitorSettings

TITLE = "proctop - q:quit  k:kill  s:sort-mode"
FOOTER = "Commands: q=quit  s=toggle sort (CPU/MEM/PID)  k=kill <pid>"

BAR_LABEL_WIDTH = 24
TABLE_HEADER_ROW = 6
# Title, sort, summary, two bars, spacer and column header above the table;
# footer and prompt below it
FIXED_CHROME_ROWS = TABLE_HEADER_ROW + 3

FILL = "█"
EMPTY = "░"
CURSOR = "▏"
ELLIPSIS = "..."


class Surface(Protocol):
    """Cursor-addressed character grid with an explicit refresh."""

    rows: int
    cols: int
    cursor_visible: bool

    def clear(self) -> None: ...

    def draw(self, y: int, x: int, text: str) -> int: ...

    def move_cursor(self, y: int, x: int) -> None: ...

    def refresh(self) -> str: ...


class CharGrid:
    """In-memory Surface. refresh() freezes the grid into one string."""

    def __init__(self, rows: int = 24, cols: int = 80) -> None:
        self.rows = max(1, rows)
        self.cols = max(1, cols)
        self.cursor_visible = False
        self._cursor: tuple[int, int] | None = None
        self._cells = self._blank()
        self._frame = ""

    @property
    def frame(self) -> str:
        """Get the text pushed by the last refresh."""
        return self._frame

    def resize(self, rows: int, cols: int) -> None:
        """Change the grid size; the contents are cleared."""
        self.rows = max(1, rows)
        self.cols = max(1, cols)
        self.clear()

    def clear(self) -> None:
        """Blank every cell."""
        self._cells = self._blank()
        self._cursor = None

    def draw(self, y: int, x: int, text: str) -> int:
        """Write text at (y, x), clipped to the grid. Returns the column after the text."""
        if not 0 <= y < self.rows or x >= self.cols:
            return x
        row = self._cells[y]
        for offset, char in enumerate(text):
            col = x + offset
            if col >= self.cols:
                break
            if col >= 0:
                row[col] = char
        return x + len(text)

    def move_cursor(self, y: int, x: int) -> None:
        """Place the cursor, clamped to the grid."""
        self._cursor = (min(max(0, y), self.rows - 1), min(max(0, x), self.cols - 1))

    def line(self, y: int) -> str:
        """Get the current contents of row y without trailing blanks."""
        return "".join(self._cells[y]).rstrip()

    def refresh(self) -> str:
        """Freeze the grid into the frame text and return it."""
        cells = [list(row) for row in self._cells]
        if self.cursor_visible and self._cursor is not None:
            y, x = self._cursor
            cells[y][x] = CURSOR
        self._frame = "\n".join("".join(row).rstrip() for row in cells)
        return self._frame

    def _blank(self) -> list[list[str]]:
        return [[" "] * self.cols for _ in range(self.rows)]


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:.0f}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_uptime(seconds: float) -> str:
    """Format uptime as 'D days, HH:MM:SS' or 'HH:MM:SS'."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def bar_cells(fraction: float, width: int) -> int:
    """Number of filled cells for fraction, clamped to [0, 1], rounding half up."""
    if width <= 0:
        return 0
    fraction = min(1.0, max(0.0, fraction))
    return int(fraction * width + 0.5)


def display_name(pid: int, name: str, width: int = 20) -> str:
    """Name cut to width with an ellipsis marker; unnamed processes show as [pid]."""
    if not name:
        name = f"[{pid}]"
    if len(name) > width:
        return name[: width - len(ELLIPSIS)] + ELLIPSIS
    return name


class Renderer:
    """Lays out a complete frame: header, bars, process table, footer and prompt."""

    def __init__(self, settings: MonitorSettings | None = None) -> None:
        self._settings = settings or MonitorSettings()

    def rows_available(self, total_rows: int) -> int:
        """Process rows that fit under the fixed chrome, at least one."""
        return max(1, total_rows - FIXED_CHROME_ROWS)

    def render(self, surface: Surface, frame: Frame | None, prompt: str) -> str:
        """Rebuild the whole grid and refresh it. Returns the pushed frame."""
        surface.clear()
        surface.draw(0, 0, TITLE)

        if frame is None:
            surface.draw(1, 0, "Collecting first sample...")
        else:
            self._draw_header(surface, frame)
            self._draw_table(surface, frame)

        surface.draw(surface.rows - 2, 0, FOOTER)
        end = surface.draw(surface.rows - 1, 0, prompt)
        surface.move_cursor(surface.rows - 1, end)
        return surface.refresh()

    def _draw_header(self, surface: Surface, frame: Frame) -> None:
        counters = frame.counters
        surface.draw(1, 0, f"Sort: {frame.sort_mode.label}")
        surface.draw(
            2,
            0,
            f"Uptime: {format_uptime(counters.uptime_seconds)}  "
            f"CPU (sum processes): {frame.cpu_total:.2f}%  "
            f"Mem: {format_bytes(counters.mem_total)} total  "
            f"Avail: {format_bytes(counters.mem_available)}",
        )

        width = max(self._settings.min_bar_width, surface.cols // 3)
        surface.draw(3, 0, "CPU bar (sum processes):")
        self._draw_bar(surface, 3, width, frame.cpu_total / 100.0)

        surface.draw(4, 0, "Memory usage:")
        end = self._draw_bar(surface, 4, width, frame.mem_fraction)
        used = counters.mem_total - counters.mem_available
        surface.draw(
            4,
            end + 2,
            f"{format_bytes(used)}/{format_bytes(counters.mem_total)} ({frame.mem_fraction * 100:.1f}%)",
        )

    def _draw_bar(self, surface: Surface, y: int, width: int, fraction: float) -> int:
        filled = bar_cells(fraction, width)
        return surface.draw(y, BAR_LABEL_WIDTH, FILL * filled + EMPTY * (width - filled))

    def _draw_table(self, surface: Surface, frame: Frame) -> None:
        name_width = self._settings.name_width
        surface.draw(
            TABLE_HEADER_ROW, 0, f"{'PID':<6} {'NAME':<{name_width}} {'CPU %':>8} {'MEM %':>8}"
        )
        first_row = TABLE_HEADER_ROW + 1
        shown = frame.views[: self.rows_available(surface.rows)]
        for offset, view in enumerate(shown):
            name = display_name(view.pid, view.name, name_width)
            surface.draw(
                first_row + offset,
                0,
                f"{view.pid:<6} {name:<{name_width}} {view.cpu_pct:8.2f} {view.mem_pct:8.2f}",
            )
