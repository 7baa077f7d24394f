"""Board surface abstractions.

A board surface reports its current pixel contents and its on-screen
geometry. Concrete desktop bindings live in ``tilebot.platform``.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from tilebot.core.data_models import BoardGeometry
from tilebot.core.errors import SourceUnavailable

logger = logging.getLogger(__name__)


class BoardSurface(ABC):
    """Read-only view of the rendered board."""

    @abstractmethod
    def capture(self) -> Image.Image:
        """Return the current pixel contents as an RGB image.

        Raises:
            SourceUnavailable: If the surface cannot be read
        """

    @abstractmethod
    def geometry(self) -> BoardGeometry:
        """Return the on-screen position and size of the surface."""


class StaticImageSurface(BoardSurface):
    """Surface backed by an in-memory image."""

    def __init__(self, image: Optional[Image.Image], origin: Tuple[float, float] = (0, 0)):
        self.image = image
        self.origin = origin

    def capture(self) -> Image.Image:
        if self.image is None:
            raise SourceUnavailable("No board image loaded")
        return self.image.convert('RGB')

    def geometry(self) -> BoardGeometry:
        width, height = self.image.size if self.image is not None else (0, 0)
        return BoardGeometry(self.origin[0], self.origin[1], width, height)


class ImageFileSurface(BoardSurface):
    """Surface read from an image file on every capture.

    Useful for replaying saved screenshots; the geometry places the image at
    ``origin`` on screen.
    """

    def __init__(self, path: Union[str, Path], origin: Tuple[float, float] = (0, 0)):
        self.path = Path(path)
        self.origin = origin
        self._size: Optional[Tuple[int, int]] = None

    def _open(self) -> Image.Image:
        try:
            with Image.open(self.path) as image:
                return image.convert('RGB')
        except FileNotFoundError:
            raise SourceUnavailable(f"Board image not found: {self.path}")
        except (OSError, UnidentifiedImageError) as e:
            raise SourceUnavailable(f"Cannot read board image {self.path}: {e}")

    def capture(self) -> Image.Image:
        try:
            image = self._open()
        except SourceUnavailable:
            self._size = None
            raise
        self._size = image.size
        logger.debug(f"Loaded board image {self.path} ({image.width}x{image.height})")
        return image

    def geometry(self) -> BoardGeometry:
        """Size as of the last capture; the file is only read when nothing was captured yet."""
        if self._size is None:
            try:
                with Image.open(self.path) as image:
                    self._size = image.size
            except (OSError, UnidentifiedImageError):
                return BoardGeometry(self.origin[0], self.origin[1], 0, 0)
        width, height = self._size
        return BoardGeometry(self.origin[0], self.origin[1], width, height)
