"""pymon - Main Textual application."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Sparkline, Static

from pymon.config import PERIODS, MonitorConfig, parse_config
from pymon.errors import StatePoisonedError
from pymon.formatting import (
    cpu_summary,
    format_bytes,
    format_duration,
    format_rate,
    memory_summary,
)
from pymon.logger import setup_logger
from pymon.models import Snapshot, SystemInfo
from pymon.monitor import SystemMonitor
from pymon.state import MonitorState


class ViewKind(Enum):
    """What the main chart shows."""

    CPU = "cpu"
    MEM = "mem"
    NET = "net"
    DISK = "disk"
    GPU = "gpu"


@dataclass(frozen=True)
class ChartView:
    kind: ViewKind
    gpu_id: int = 0

    @property
    def label(self) -> str:
        if self.kind is ViewKind.GPU:
            return f"GPU {self.gpu_id}"
        return {
            ViewKind.CPU: "CPU",
            ViewKind.MEM: "Memory",
            ViewKind.NET: "Network",
            ViewKind.DISK: "Disk",
        }[self.kind]


def available_views(sys_info: SystemInfo) -> list[ChartView]:
    """Chart views for this machine: fixed ones plus one per GPU."""
    views = [ChartView(ViewKind.CPU), ChartView(ViewKind.MEM), ChartView(ViewKind.NET), ChartView(ViewKind.DISK)]
    views.extend(ChartView(ViewKind.GPU, gpu_id) for gpu_id in range(sys_info.gpu_count))
    return views


def series_for(view: ChartView, snapshots: list[Snapshot]) -> list[float]:
    """Extract the plotted values of one view from a decimated window."""
    if view.kind is ViewKind.CPU:
        return [cpu_summary(s)[0] for s in snapshots]
    if view.kind is ViewKind.MEM:
        return [float(s.mem) for s in snapshots]
    if view.kind is ViewKind.NET:
        return [float(s.network.down) for s in snapshots]
    if view.kind is ViewKind.DISK:
        # Cumulative totals, not a rate
        return [float(s.disk.read_bytes + s.disk.writen_bytes) for s in snapshots]
    return [float(s.gpus[view.gpu_id].usage) if view.gpu_id < len(s.gpus) else 0.0 for s in snapshots]


def chart_title(view: ChartView, sys_info: SystemInfo) -> str:
    if view.kind is ViewKind.CPU:
        return sys_info.cpu_brand
    if view.kind is ViewKind.GPU and view.gpu_id < len(sys_info.gpu_names):
        return sys_info.gpu_names[view.gpu_id]
    return view.label


@dataclass
class AppContext:
    """Everything the application needs, built once at startup."""

    config: MonitorConfig
    state: MonitorState
    monitor: SystemMonitor
    update_queue: Queue[Snapshot]

    @classmethod
    def create(cls, config: MonitorConfig) -> "AppContext":
        state = MonitorState.create(retention=config.retention)
        update_queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(state, update_queue, interval=config.interval)
        return cls(config=config, state=state, monitor=monitor, update_queue=update_queue)

    def close(self) -> None:
        self.monitor.stop()
        self.state.close()


class SidePanel(Static):
    """Summary of the latest snapshot."""

    DEFAULT_CSS = """
    SidePanel {
        width: 36;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._snapshot: Snapshot | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    def update_stats(self, snapshot: Snapshot) -> None:
        """Update the summary from a snapshot."""
        self._snapshot = snapshot
        self.update(self.render_summary(snapshot))

    @staticmethod
    def render_summary(snapshot: Snapshot) -> str:
        usage, ghz = cpu_summary(snapshot)
        used, total, percent = memory_summary(snapshot)
        lines = [
            "[b]CPU[/b]",
            f"{usage:.0f}% {ghz:.2f} GHz",
            "",
            "[b]Memory[/b]",
            f"{used:.1f}/{total:.1f} GiB ({percent:.0f}%)",
            "",
        ]
        for gpu_id, gpu in enumerate(snapshot.gpus):
            lines.extend([f"[b]GPU {gpu_id}[/b]", f"{gpu.usage}% ({gpu.temp} ℃)", ""])
        lines.extend(
            [
                "[b]Network[/b]",
                f"↓ {format_rate(snapshot.network.down)}  ↑ {format_rate(snapshot.network.up)}",
                "",
                "[b]Disk[/b]",
                f"R {format_bytes(snapshot.disk.read_bytes)}  W {format_bytes(snapshot.disk.writen_bytes)}",
                "",
                f"Processes: {snapshot.processes}",
                f"Uptime: {format_duration(snapshot.up_time)}",
            ]
        )
        return "\n".join(lines)


class ChartPanel(Vertical):
    """Main chart over the selected period."""

    DEFAULT_CSS = """
    ChartPanel {
        width: 1fr;
        padding: 1;
    }

    #chart-title {
        text-style: bold;
    }

    #chart {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("", id="chart-title")
        yield Sparkline([], id="chart")
        yield Static("", id="chart-caption")

    def show(self, title: str, values: list[float], caption: str) -> None:
        self.query_one("#chart-title", Static).update(title)
        self.query_one("#chart", Sparkline).data = values
        self.query_one("#chart-caption", Static).update(caption)


class PymonApp(App):
    """Main pymon application."""

    TITLE = "pymon"
    SUB_TITLE = "Resource Monitor"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("v", "next_view", "View"),
        ("p", "next_period", "Period"),
    ]

    def __init__(self, context: AppContext) -> None:
        """Initialize the PymonApp."""
        super().__init__()
        self._app_context = context
        self._sys_info = context.state.get_sys_info()
        self._views = available_views(self._sys_info)
        self._view_index = 0

        lookback = context.config.lookback
        self._periods = list(PERIODS) if lookback in PERIODS else [lookback, *PERIODS]
        self._period_index = self._periods.index(lookback)
        self._failure_reported = False

    @property
    def view(self) -> ChartView:
        return self._views[self._view_index]

    @property
    def lookback(self) -> int:
        """Chart period in seconds."""
        return self._periods[self._period_index]

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Header()
        yield Horizontal(SidePanel(id="side-panel"), ChartPanel(id="chart-panel"))
        yield Footer()

    def on_mount(self) -> None:
        """Start sampling when the app is mounted."""
        self._app_context.monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    async def _check_for_updates(self) -> None:
        """Drain the snapshot queue and redraw from the latest one."""
        snapshot = None
        while True:
            try:
                snapshot = self._app_context.update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.query_one(SidePanel).update_stats(snapshot)
            await self.refresh_chart()

        failure = self._app_context.monitor.failure
        if failure is not None and not self._failure_reported:
            self._failure_reported = True
            self.sub_title = "Statistics unavailable"
            self.notify(str(failure), severity="error", timeout=30)

    def _lookback_samples(self) -> int:
        return max(1, round(self.lookback / self._app_context.config.interval))

    async def refresh_chart(self) -> None:
        """Query a decimated window off the UI thread and redraw the chart."""
        try:
            snapshots = await asyncio.to_thread(
                self._app_context.state.window,
                self._lookback_samples(),
                self._app_context.config.point_budget,
            )
        except StatePoisonedError:
            return
        view = self.view
        self.query_one(ChartPanel).show(
            chart_title(view, self._sys_info),
            series_for(view, snapshots),
            f"{view.label} · last {format_duration(self.lookback)}",
        )

    async def action_next_view(self) -> None:
        """Cycle the main chart through the available views."""
        self._view_index = (self._view_index + 1) % len(self._views)
        self.notify(f"View: {self.view.label}")
        await self.refresh_chart()

    async def action_next_period(self) -> None:
        """Cycle the chart period."""
        self._period_index = (self._period_index + 1) % len(self._periods)
        self.notify(f"Period: {format_duration(self.lookback)}")
        await self.refresh_chart()

    async def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._app_context.close()
        self.exit()


def main(argv: list[str] | None = None) -> None:
    """Entry point for the pymon application."""
    config = parse_config(argv)
    # Console logging would draw over the TUI
    setup_logger(
        log_file_path=config.log_file,
        file_level_name=config.log_level,
        console=False,
    )
    context = AppContext.create(config)
    try:
        PymonApp(context).run()
    finally:
        context.close()


if __name__ == "__main__":
    main()
