"""Main entry point for the active window monitor."""
import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from gi.repository import GLib

from activewindow.bus.listener import ActiveWindowListener
from activewindow.bus.publisher import NotificationPublisher
from activewindow.compositor.base_compositor import BaseCompositor
from activewindow.compositor.selection import get_compositor
from activewindow.core.monitor import ActiveClientMonitor
from activewindow.utils.config import Settings, load_config
from activewindow.utils.events import NotificationEvent
from activewindow.utils.exceptions import CompositorError, ConfigError
from activewindow.utils.logging import configure_logging, get_logger
from activewindow.utils.scheduler import AsyncioScheduler

logger = get_logger(__name__)

class ActiveWindowDaemon:
    """Wires the compositor, the monitor and the bus publisher together."""

    def __init__(self, settings: Settings, compositor: BaseCompositor,
                 publisher: Optional[NotificationPublisher] = None):
        self.settings = settings
        self.compositor = compositor
        self.publisher = publisher or NotificationPublisher()
        self.monitor: Optional[ActiveClientMonitor] = None
        self._shutdown_event = asyncio.Event()
        self.is_shutting_down = False

    async def start(self) -> None:
        await self.compositor.start()
        self.monitor = ActiveClientMonitor(
            self.compositor,
            self.publisher,
            AsyncioScheduler(asyncio.get_running_loop()),
            delays=self.settings.retry.delays,
            poll_interval=self.settings.retry.poll_interval,
        )
        self.monitor.start()

    async def run(self) -> None:
        await self.start()
        logger.info("Watching active window changes")
        shutdown = asyncio.create_task(self._shutdown_event.wait())
        closed = asyncio.create_task(self.compositor.wait_closed())
        done, pending = await asyncio.wait({shutdown, closed}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()

        if closed in done and not self.is_shutting_down:
            await self.cleanup()
            raise CompositorError("Compositor event stream ended")

    async def cleanup(self) -> None:
        """Stop monitoring and release the bus and compositor."""
        if self.is_shutting_down:
            return
        self.is_shutting_down = True
        logger.info("Shutting down")
        try:
            if self.monitor:
                self.monitor.stop()
            await self.compositor.cleanup()
            self.publisher.close()
        finally:
            self._shutdown_event.set()

async def async_main(settings: Settings) -> None:
    """Async main entry point."""
    daemon = ActiveWindowDaemon(settings, get_compositor(settings.compositor))

    loop = asyncio.get_running_loop()
    for s in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            s, lambda s=s: asyncio.create_task(daemon.cleanup())
        )

    try:
        await daemon.run()
    finally:
        await daemon.cleanup()

def print_event(event: NotificationEvent) -> None:
    print(f"{event.signal_name} class={event.window_class!r} title={event.window_title!r}", flush=True)

def listen() -> None:
    """Print every active window signal seen on the session bus."""
    listener = ActiveWindowListener(callback=print_event)
    listener.start()
    loop = GLib.MainLoop()
    try:
        loop.run()
    except KeyboardInterrupt:
        pass
    finally:
        listener.stop()

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="activewindow",
        description="Publish active window changes on the session bus."
    )
    parser.add_argument("command", nargs="?", default="run", choices=["run", "listen"])
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_config(args.config)
    except ConfigError as e:
        configure_logging()
        logger.error(str(e))
        return 2

    configure_logging(development=settings.development or args.debug, log_file=settings.log_file)

    if args.command == "listen":
        listen()
        return 0

    try:
        asyncio.run(async_main(settings))
    except CompositorError as e:
        logger.error(f"Cannot start: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0

if __name__ == "__main__":
    sys.exit(main())
