"""List navigation helpers shared by pickers, palettes and the board."""

from typing import Tuple


def clamp_index(index: int, total: int) -> int:
    if total <= 0:
        return 0
    return max(0, min(index, total - 1))


def move_index(index: int, delta: int, total: int) -> int:
    """Move a list pointer by `delta`, clamping to available items."""
    return clamp_index(index + delta, total)


def window_bounds(selected: int, total: int, height: int) -> Tuple[int, int]:
    """[start, end) slice of a list so `selected` stays visible.

    The window is centred on the selection where possible and pinned to the
    list edges otherwise.
    """
    if total <= 0 or height <= 0:
        return 0, 0
    if total <= height:
        return 0, total
    selected = clamp_index(selected, total)
    start = selected - height // 2
    start = max(0, min(start, total - height))
    return start, start + height


__all__ = ["clamp_index", "move_index", "window_bounds"]
