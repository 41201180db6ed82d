"""Window title quality checks.

Compositors often announce a window before the application has set its
real caption. Such windows report an empty title, a title starting with
the ``_`` placeholder sentinel, or just their own class name.
"""

PLACEHOLDER_PREFIX = "_"


def is_problematic(title: str) -> bool:
    """Return True when the title looks like a placeholder caption."""
    return not title or title.startswith(PLACEHOLDER_PREFIX)


def is_usable(title: str, window_class: str) -> bool:
    """Return True when the title is worth announcing as final."""
    return not is_problematic(title) and title != window_class


def window_title_usable(window) -> bool:
    return is_usable(window.caption(), window.resource_class())
