"""Desktop bindings: screen capture with mss, pointer input with pyautogui.

pyautogui talks to the display server as soon as it is imported, so it is
imported when a binding is constructed rather than at module import.
"""

import logging
from typing import Tuple

import mss
from mss.exception import ScreenShotError
from PIL import Image

from tilebot.automation.dispatcher import Indicator, PointerInjector
from tilebot.core.data_models import BoardGeometry, Point
from tilebot.core.errors import SourceUnavailable
from tilebot.perception.surface import BoardSurface

logger = logging.getLogger(__name__)


def _load_pyautogui():
    import pyautogui
    # Clicks are paced by the playback controller
    pyautogui.PAUSE = 0
    return pyautogui


class ScreenRegionSurface(BoardSurface):
    """Board surface read from a fixed region of the screen."""

    def __init__(self, left: int, top: int, width: int, height: int):
        self.region = {'left': int(left), 'top': int(top), 'width': int(width), 'height': int(height)}

    def capture(self) -> Image.Image:
        if self.region['width'] <= 0 or self.region['height'] <= 0:
            raise SourceUnavailable(f"Screen region has zero extent: {self.region}")
        try:
            with mss.mss() as sct:
                shot = sct.grab(self.region)
        except ScreenShotError as e:
            raise SourceUnavailable(f"Screen capture failed: {e}")
        return Image.frombytes('RGB', shot.size, shot.bgra, 'raw', 'BGRX')

    def geometry(self) -> BoardGeometry:
        r = self.region
        return BoardGeometry(r['left'], r['top'], r['width'], r['height'])


class PyAutoGuiInjector(PointerInjector):
    """Left-button press/release through pyautogui."""

    def __init__(self):
        self._gui = _load_pyautogui()

    def press(self, point: Point) -> None:
        self._gui.mouseDown(x=point.x, y=point.y, button='left')

    def release(self, point: Point) -> None:
        self._gui.mouseUp(x=point.x, y=point.y, button='left')


class CursorIndicator(Indicator):
    """Uses the OS cursor itself as the visible indicator."""

    def __init__(self):
        self._gui = _load_pyautogui()
        self.position: Tuple[int, int] = self._gui.position()

    def move_to(self, point: Point) -> None:
        self._gui.moveTo(point.x, point.y)
        self.position = (point.x, point.y)

    def mark_arrived(self) -> None:
        logger.debug(f"Cursor at {self.position}")
