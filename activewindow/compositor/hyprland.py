# activewindow/compositor/hyprland.py
import json
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

from activewindow.compositor.base_compositor import BaseCompositor, BaseWindow
from activewindow.utils.exceptions import CompositorError

logger = logging.getLogger(__name__)

def normalize_address(address: str) -> str:
    """Event payloads carry bare hex addresses, hyprctl prefixes them with 0x."""
    address = address.strip().lower()
    if address.startswith("0x"):
        address = address[2:]
    return address

@dataclass(eq=False)
class HyprlandWindow(BaseWindow):
    """A Hyprland client, identified by its address."""
    address: str
    window_class: str = ""
    title: str = ""
    workspace: Optional[str] = None

    def resource_class(self) -> str:
        return self.window_class

    def caption(self) -> str:
        return self.title

class HyprlandCompositor(BaseCompositor):
    """Compositor implementation for Hyprland."""

    def __init__(self) -> None:
        """Initialize Hyprland compositor interface."""
        super().__init__()
        self.running = False
        self._windows: Dict[str, HyprlandWindow] = {}
        self._active: Optional[HyprlandWindow] = None
        self._socket_task: Optional[asyncio.Task] = None
        self._socket_writer: Optional[asyncio.StreamWriter] = None
        self._pending: set = set()
        self._title_v2_seen = False

    @staticmethod
    def socket_path() -> str:
        his = os.environ.get("HYPRLAND_INSTANCE_SIGNATURE")
        if not his:
            raise CompositorError("HYPRLAND_INSTANCE_SIGNATURE not found in environment")
        runtime_dir = os.environ.get("XDG_RUNTIME_DIR", f"/run/user/{os.getuid()}")
        return f"{runtime_dir}/hypr/{his}/.socket2.sock"

    def active_window(self) -> Optional[HyprlandWindow]:
        return self._active

    def windows(self) -> List[HyprlandWindow]:
        return list(self._windows.values())

    async def _hyprctl(self, *args: str) -> Any:
        """Run a hyprctl query and return its decoded JSON output."""
        proc = await asyncio.create_subprocess_exec(
            "hyprctl", *args, "-j",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, _ = await proc.communicate()
        if not stdout.strip():
            return None
        return json.loads(stdout.decode())

    async def refresh_windows(self) -> None:
        """Seed the window table and active window from hyprctl."""
        try:
            clients = await self._hyprctl("clients") or []
            active = await self._hyprctl("activewindow") or {}
        except Exception as e:
            logger.error(f"Failed to query Hyprland clients: {e}")
            return

        for client in clients:
            address = normalize_address(client.get("address", ""))
            if not address:
                continue
            window = self._windows.get(address)
            if window is None:
                window = HyprlandWindow(address)
                self._windows[address] = window
            window.window_class = client.get("class", "")
            window.title = client.get("title", "")
            workspace = client.get("workspace", {})
            window.workspace = workspace.get("name") if isinstance(workspace, dict) else workspace

        active_address = normalize_address(active.get("address", "")) if isinstance(active, dict) else ""
        self._active = self._windows.get(active_address)

    async def start(self) -> None:
        """Seed state and start listening on Hyprland's event socket."""
        path = self.socket_path()
        await self.refresh_windows()
        self.running = True
        self._socket_task = asyncio.create_task(self._listen_for_events(path))

    async def _listen_for_events(self, socket_path: str) -> None:
        """Listen for events from Hyprland's IPC socket."""
        try:
            reader, writer = await asyncio.open_unix_connection(socket_path)
            self._socket_writer = writer

            while self.running:
                line = await reader.readline()
                if not line:
                    logger.error("Hyprland event socket closed")
                    break
                try:
                    self.handle_event(line.decode(errors="replace").rstrip("\n"))
                except Exception as e:
                    logger.error(f"Error processing socket data: {e}", exc_info=True)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"IPC socket error: {e}")
        finally:
            self.running = False
            if self._socket_writer:
                self._socket_writer.close()
                self._socket_writer = None

    async def wait_closed(self) -> None:
        """Return once the event socket listener has ended, for any reason."""
        if self._socket_task is not None:
            await asyncio.wait({self._socket_task})

    def handle_event(self, line: str) -> None:
        """Apply one ``EVENT>>DATA`` line from the event socket."""
        event, sep, data = line.partition(">>")
        if not sep:
            return

        if event == "openwindow":
            parts = data.split(",", 3)
            if len(parts) < 4:
                logger.warning(f"Malformed openwindow event: {data!r}")
                return
            address, workspace, window_class, title = parts
            window = HyprlandWindow(normalize_address(address), window_class, title, workspace)
            self._windows[window.address] = window
            self._notify_added(window)

        elif event == "closewindow":
            window = self._windows.pop(normalize_address(data), None)
            if window is None:
                return
            if self._active is window:
                self._active = None
            self._notify_removed(window)

        elif event == "activewindowv2":
            address = normalize_address(data.strip(","))
            window = self._windows.get(address) if address else None
            if address and window is None:
                logger.debug(f"Focus moved to unknown window {address}")
            self._active = window
            self._notify_activated()

        elif event == "windowtitlev2":
            address, _, title = data.partition(",")
            self._title_v2_seen = True
            window = self._windows.get(normalize_address(address))
            if window is None:
                return
            window.title = title
            self._notify_caption_changed(window)

        elif event == "windowtitle" and not self._title_v2_seen:
            # Older Hyprland releases only send the address. Newer ones send
            # windowtitlev2 right after windowtitle, so the first title change
            # may still trigger one redundant hyprctl refresh; the title
            # comparison in _refresh_title keeps it from notifying twice.
            window = self._windows.get(normalize_address(data))
            if window is not None:
                task = asyncio.create_task(self._refresh_title(window))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

    async def _refresh_title(self, window: HyprlandWindow) -> None:
        try:
            clients = await self._hyprctl("clients") or []
        except Exception as e:
            logger.error(f"Failed to refresh window title: {e}")
            return
        for client in clients:
            if normalize_address(client.get("address", "")) == window.address:
                title = client.get("title", "")
                if title != window.title and window.address in self._windows:
                    window.title = title
                    self._notify_caption_changed(window)
                return

    async def cleanup(self) -> None:
        """Clean up IPC socket connection."""
        self.running = False
        for task in list(self._pending):
            task.cancel()
        if self._socket_task:
            self._socket_task.cancel()
            try:
                await self._socket_task
            except asyncio.CancelledError:
                pass
            self._socket_task = None
