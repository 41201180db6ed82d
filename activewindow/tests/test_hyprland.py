"""Tests for the Hyprland compositor backend."""

import asyncio
import os
import unittest
from unittest.mock import AsyncMock, patch

from activewindow.compositor.hyprland import HyprlandCompositor, normalize_address
from activewindow.compositor.selection import get_compositor
from activewindow.utils.exceptions import CompositorError

CLIENTS = [
    {"address": "0x55aa01", "class": "firefox", "title": "Mozilla Firefox",
     "workspace": {"id": 1, "name": "1"}},
    {"address": "0x55aa02", "class": "kitty", "title": "~", "workspace": {"id": 2, "name": "2"}},
]


def fake_hyprctl(clients, active):
    async def _run(*args):
        if args == ("clients",):
            return clients
        if args == ("activewindow",):
            return active
        raise AssertionError(f"unexpected hyprctl call {args}")
    return AsyncMock(side_effect=_run)


class TestHyprlandCompositor(unittest.IsolatedAsyncioTestCase):
    """Test cases for HyprlandCompositor event handling."""

    async def asyncSetUp(self):
        """Set up test fixtures."""
        self.compositor = HyprlandCompositor()
        self.calls = []
        self.compositor.on_activated(lambda: self.calls.append(("activated", self.compositor.active_window())))
        self.compositor.on_added(lambda w: self.calls.append(("added", w)))
        self.compositor.on_removed(lambda w: self.calls.append(("removed", w)))

    async def _seed(self, active=None):
        active = active if active is not None else {"address": "0x55aa01"}
        with patch.object(self.compositor, "_hyprctl", fake_hyprctl(CLIENTS, active)):
            await self.compositor.refresh_windows()

    def test_normalize_address(self):
        self.assertEqual(normalize_address("0x55AA01"), "55aa01")
        self.assertEqual(normalize_address("55aa01"), "55aa01")
        self.assertEqual(normalize_address(""), "")

    async def test_refresh_seeds_windows_and_focus(self):
        await self._seed()
        windows = {w.address: w for w in self.compositor.windows()}
        self.assertEqual(set(windows), {"55aa01", "55aa02"})
        self.assertEqual(windows["55aa02"].resource_class(), "kitty")
        self.assertEqual(windows["55aa02"].workspace, "2")
        self.assertIs(self.compositor.active_window(), windows["55aa01"])
        self.assertEqual(self.calls, [])

    async def test_refresh_without_focus(self):
        await self._seed(active={})
        self.assertIsNone(self.compositor.active_window())

    async def test_refresh_failure_is_logged(self):
        failing = AsyncMock(side_effect=FileNotFoundError("hyprctl"))
        with patch.object(self.compositor, "_hyprctl", failing):
            with self.assertLogs("activewindow.compositor.hyprland", level="ERROR"):
                await self.compositor.refresh_windows()
        self.assertEqual(self.compositor.windows(), [])

    async def test_openwindow_event(self):
        self.compositor.handle_event("openwindow>>55bb01,3,org.gnome.Nautilus,Files, Home")
        kind, window = self.calls[0]
        self.assertEqual(kind, "added")
        self.assertEqual(window.address, "55bb01")
        self.assertEqual(window.resource_class(), "org.gnome.Nautilus")
        # Titles may contain commas
        self.assertEqual(window.caption(), "Files, Home")

    async def test_malformed_openwindow_is_ignored(self):
        with self.assertLogs("activewindow.compositor.hyprland", level="WARNING"):
            self.compositor.handle_event("openwindow>>55bb01,3")
        self.assertEqual(self.calls, [])

    async def test_activewindowv2_event(self):
        await self._seed()
        self.compositor.handle_event("activewindowv2>>55aa02")
        kind, window = self.calls[-1]
        self.assertEqual(kind, "activated")
        self.assertEqual(window.resource_class(), "kitty")

    async def test_focus_cleared(self):
        await self._seed()
        self.compositor.handle_event("activewindowv2>>")
        self.assertEqual(self.calls, [("activated", None)])
        self.compositor.handle_event("activewindowv2>>,")
        self.assertIsNone(self.compositor.active_window())

    async def test_windowtitlev2_notifies_subscribers(self):
        await self._seed()
        window = self.compositor.active_window()
        titles = []
        self.compositor.on_caption_changed(window, lambda w: titles.append(w.caption()))

        self.compositor.handle_event("windowtitlev2>>55aa01,New Tab - Mozilla Firefox")
        self.compositor.handle_event("windowtitlev2>>55aa02,~/src")

        self.assertEqual(titles, ["New Tab - Mozilla Firefox"])

    async def test_legacy_windowtitle_refreshes_from_hyprctl(self):
        await self._seed()
        window = self.compositor.active_window()
        titles = []
        self.compositor.on_caption_changed(window, lambda w: titles.append(w.caption()))

        updated = [dict(CLIENTS[0], title="Example Domain"), CLIENTS[1]]
        with patch.object(self.compositor, "_hyprctl", fake_hyprctl(updated, {})):
            self.compositor.handle_event("windowtitle>>55aa01")
            await asyncio.gather(*self.compositor._pending)

        self.assertEqual(titles, ["Example Domain"])

    async def test_legacy_windowtitle_ignored_once_v2_seen(self):
        await self._seed()
        self.compositor.handle_event("windowtitlev2>>55aa02,~/src")
        self.compositor.handle_event("windowtitle>>55aa01")
        self.assertEqual(len(self.compositor._pending), 0)

    async def test_legacy_refresh_after_v2_does_not_renotify(self):
        await self._seed()
        window = self.compositor.active_window()
        titles = []
        self.compositor.on_caption_changed(window, lambda w: titles.append(w.caption()))

        updated = [dict(CLIENTS[0], title="Example Domain"), CLIENTS[1]]
        with patch.object(self.compositor, "_hyprctl", fake_hyprctl(updated, {})):
            self.compositor.handle_event("windowtitle>>55aa01")
            self.compositor.handle_event("windowtitlev2>>55aa01,Example Domain")
            await asyncio.gather(*self.compositor._pending)

        self.assertEqual(titles, ["Example Domain"])

    async def test_wait_closed_returns_when_listener_ends(self):
        with patch.object(HyprlandCompositor, "socket_path", return_value="/nonexistent/.socket2.sock"), \
                patch.object(self.compositor, "_hyprctl", AsyncMock(return_value=None)):
            with self.assertLogs("activewindow.compositor.hyprland", level="ERROR"):
                await self.compositor.start()
                await asyncio.wait_for(self.compositor.wait_closed(), 1)
        self.assertFalse(self.compositor.running)

    async def test_closewindow_clears_focus_before_listeners(self):
        await self._seed()
        window = self.compositor.active_window()
        seen_active = []
        self.compositor.on_removed(lambda w: seen_active.append(self.compositor.active_window()))

        self.compositor.handle_event("closewindow>>55aa01")

        self.assertIn(("removed", window), self.calls)
        self.assertEqual(seen_active, [None])
        self.assertEqual(len(self.compositor.windows()), 1)

    async def test_closewindow_unknown_address(self):
        self.compositor.handle_event("closewindow>>deadbeef")
        self.assertEqual(self.calls, [])

    async def test_callback_errors_are_contained(self):
        self.compositor.on_added(self._boom)
        with self.assertLogs("activewindow.compositor.base_compositor", level="ERROR"):
            self.compositor.handle_event("openwindow>>55bb01,3,kitty,~")
        self.assertEqual(self.calls[0][0], "added")

    @staticmethod
    def _boom(window):
        raise RuntimeError("boom")

    async def test_unrelated_events_are_ignored(self):
        self.compositor.handle_event("workspace>>2")
        self.compositor.handle_event("garbage")
        self.assertEqual(self.calls, [])


class TestCompositorSelection(unittest.TestCase):
    """Test cases for compositor detection."""

    def test_socket_path(self):
        env = {"HYPRLAND_INSTANCE_SIGNATURE": "abc_123", "XDG_RUNTIME_DIR": "/run/user/1000"}
        with patch.dict(os.environ, env):
            self.assertEqual(HyprlandCompositor.socket_path(),
                             "/run/user/1000/hypr/abc_123/.socket2.sock")

    def test_socket_path_requires_signature(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(CompositorError):
                HyprlandCompositor.socket_path()

    def test_explicit_hyprland(self):
        self.assertIsInstance(get_compositor("hyprland"), HyprlandCompositor)

    def test_auto_detects_hyprland(self):
        with patch.dict(os.environ, {"HYPRLAND_INSTANCE_SIGNATURE": "abc"}), \
                patch("activewindow.compositor.selection.platform.system", return_value="Linux"):
            self.assertIsInstance(get_compositor("auto"), HyprlandCompositor)

    def test_auto_fails_elsewhere(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(CompositorError):
                get_compositor("auto")


if __name__ == '__main__':
    unittest.main()
