"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import format_bytes, format_savings, write_cli_log

console = Console()


class RequestInfo:
    """Info about a single proxied image."""

    def __init__(self, url: str, outcome: str, detail: str, timestamp: datetime):
        self.url = url[:60] + "..." if len(url) > 60 else url
        self.outcome = outcome
        self.detail = detail
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent requests and savings."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
        self._request_count = {"compressed": 0, "bypassed": 0, "failed": 0}
        self._bytes_saved = 0
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_bypass(self, url: str, size: int, content_type: str) -> None:
        """Log an image served unmodified."""
        with self._lock:
            self._request_count["bypassed"] += 1
            self._remember(url, "bypass", f"{format_bytes(size)} {content_type}")
            write_cli_log("BYPASS", url, size=size, type=content_type)
            self._refresh()

    def log_compressed(self, url: str, original_size: int, size: int) -> None:
        """Log a re-encoded image."""
        with self._lock:
            self._request_count["compressed"] += 1
            self._bytes_saved += original_size - size
            savings = format_savings(original_size, size)
            self._remember(url, "compress", savings)
            write_cli_log("COMPRESS", url, result=savings)
            self._refresh()

    def log_passthrough(self, url: str, reason: str) -> None:
        """Log a best-effort pass-through after a broken read."""
        with self._lock:
            self._request_count["bypassed"] += 1
            self._remember(url, "passthrough", reason)
            write_cli_log("PASSTHROUGH", url, reason=reason)
            self._refresh()

    def log_error(self, url: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._request_count["failed"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{status}: {truncated}")
            self._errors = self._errors[:3]
            self._remember(url, "error", str(status))
            write_cli_log("ERROR", message[:200], url=url, status=status)
            self._refresh()

    def _remember(self, url: str, outcome: str, detail: str) -> None:
        self._recent.insert(0, RequestInfo(url, outcome, detail, datetime.now()))
        self._recent = self._recent[: self._max_recent]

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Bandwidth Hero Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Compressed: {self._request_count['compressed']}", style="green")
        stats.append("  |  ")
        stats.append(f"Bypassed: {self._request_count['bypassed']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Failed: {self._request_count['failed']}", style="red")
        stats.append("  |  ")
        stats.append(f"Saved: {format_bytes(self._bytes_saved)}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Outcome", width=12)
            table.add_column("URL", ratio=2)
            table.add_column("Detail", ratio=1)

            styles = {"compress": "green", "bypass": "blue", "passthrough": "yellow", "error": "red"}
            for info in self._recent:
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    Text(info.outcome, style=styles.get(info.outcome, "")),
                    info.url,
                    info.detail,
                )
            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Point Bandwidth Hero at http://{self.config.proxy.host}:{self.config.proxy.port}/",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
