import os
import platform

from activewindow.compositor.base_compositor import BaseCompositor
from activewindow.compositor.hyprland import HyprlandCompositor
from activewindow.utils.exceptions import CompositorError

def get_compositor(name: str = "auto") -> BaseCompositor:
    """Detect and return the appropriate compositor instance."""
    if name == "hyprland":
        return HyprlandCompositor()

    system = platform.system()
    if system == "Linux" and "HYPRLAND_INSTANCE_SIGNATURE" in os.environ:
        return HyprlandCompositor()

    raise CompositorError(
        f"Compositor detection for {system} is not yet supported "
        f"(desktop: {os.environ.get('XDG_CURRENT_DESKTOP', 'unknown')})."
    )
