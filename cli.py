"""CLI entry point for bandwidth-hero-proxy."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, load_config
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Bandwidth Hero Proxy[/bold cyan]

Fetches images for the Bandwidth Hero extension and re-encodes them smaller.

[bold]Usage:[/bold]
    bandwidth-hero-proxy              Start with live dashboard
    bandwidth-hero-proxy --config     Show config location
    bandwidth-hero-proxy --help       Show this help

[bold]Request headers:[/bold]
    x-image-lite-jpeg   0 for WebP output, anything else for JPEG
    x-image-lite-bw     0 keeps color, anything else converts to grayscale
    x-image-lite-level  Output quality, 1-100
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
