"""Concrete platform bindings for the board surface, pointer input and indicator."""

from .desktop import ScreenRegionSurface, PyAutoGuiInjector, CursorIndicator

__all__ = [
    'ScreenRegionSurface',
    'PyAutoGuiInjector',
    'CursorIndicator'
]
