"""Graph watcher follows one application graph from the terminal.

Mounts a GraphView for the given application, prints the text tree once
the snapshot is loaded and again after every change (full replace, status
patch, connection change), until interrupted.

Run with:
    python -m workers.graph_watcher <app-name> [--search TEXT] [--critical-path]
"""

import argparse
import asyncio
import signal
import sys

import structlog

from graphview.client.session import Session
from graphview.logging_config import configure_logging
from graphview.sync.synchronizer import GraphSynchronizer
from graphview.view.graph_view import GraphView

logger = structlog.get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m workers.graph_watcher",
        description="Print a live text view of an application graph.",
    )
    parser.add_argument("app", help="application name")
    parser.add_argument("--search", default="", help="only show nodes whose name contains TEXT")
    parser.add_argument("--critical-path", action="store_true", help="mark critical path nodes")
    parser.add_argument("--token", default=None, help="platform bearer token (defaults to settings)")
    return parser.parse_args(argv)


class Printer:
    """Re-renders the text view whenever the synchronizer reports a change."""

    def __init__(self, view: GraphView, out=None) -> None:
        self.view = view
        self.out = out or sys.stdout
        self._last_generation = -1
        self._last_connection = None

    def header(self) -> str:
        sync = self.view.sync
        line = f"== {self.view.app_name} [{sync.connection.value}] generation {sync.generation}"
        if sync.error:
            line += f" error: {sync.error}"
        return line

    def __call__(self, sync: GraphSynchronizer) -> None:
        if sync.generation == self._last_generation and sync.connection == self._last_connection:
            return
        self._last_generation = sync.generation
        self._last_connection = sync.connection
        self.out.write(self.header() + "\n" + self.view.text() + "\n\n")
        self.out.flush()


async def watch(view: GraphView, shutdown_event: asyncio.Event, *, critical_path: bool = False) -> None:
    """Mount *view*, print on every change, close when *shutdown_event* is set."""
    printer = Printer(view)
    async with view:
        view.sync.subscribe(printer)
        if critical_path:
            await view.toggle_critical_path(True)
        printer(view.sync)
        await shutdown_event.wait()
    logger.info("graph_watcher_view_closed", app=view.app_name)


async def main(argv: list[str] | None = None) -> None:
    """Entry point: watch one application and handle OS signals for clean shutdown."""
    args = parse_args(argv)
    configure_logging()

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _request_shutdown() -> None:
        logger.info("graph_watcher_shutdown_signal_received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    view = GraphView(args.app, Session.from_settings(token=args.token))
    view.set_search(args.search)
    logger.info("graph_watcher_started", app=args.app)

    watch_task = asyncio.create_task(watch(view, shutdown_event, critical_path=args.critical_path))
    await watch_task
    logger.info("graph_watcher_stopped", app=args.app)


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
