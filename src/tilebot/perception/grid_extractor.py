"""Extraction of a discrete color grid from the rendered board."""

import logging
import time
from typing import Callable, List, Optional, Tuple

import numpy as np
from PIL import Image

from tilebot.core.data_models import BoardGrid, HSLColor, EMPTY_INDEX
from tilebot.core.errors import SourceUnavailable
from .color import ColorNormalizer
from .surface import BoardSurface

logger = logging.getLogger(__name__)

PreviewSink = Callable[[Image.Image], None]


def square_crop_box(width: int, height: int) -> Tuple[int, int, int, int]:
    """Box (left, top, right, bottom) of the centered square inside a region.

    The longer axis is cropped symmetrically; the shorter one is kept whole.
    """
    side = min(width, height)
    left = (width - side) // 2
    top = (height - side) // 2
    return left, top, left + side, top + side


def cell_centers(side: int, cells: int) -> List[int]:
    """Pixel offsets of the cell centers along one axis of a square region."""
    return [int((i + 0.5) * side / cells) for i in range(cells)]


class GridExtractor:
    """Samples the board surface into a ``BoardGrid``.

    The capture is downsampled by ``scale``, cropped to its centered square and
    split into ``width`` x ``height`` equal cells; the pixel at each cell center
    is normalized to a canonical color.
    """

    def __init__(self,
                 surface: BoardSurface,
                 normalizer: ColorNormalizer,
                 width: int = 10,
                 height: int = 10,
                 scale: float = 0.25,
                 preview_sink: Optional[PreviewSink] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid size must be positive, got {width}x{height}")
        if not 0 < scale <= 1:
            raise ValueError(f"scale must be in (0, 1], got {scale}")

        self.surface = surface
        self.normalizer = normalizer
        self.width = width
        self.height = height
        self.scale = scale
        self.preview_sink = preview_sink

        self.last_preview: Optional[Image.Image] = None
        self.extractions = 0

    def _downsample(self, image: Image.Image) -> Image.Image:
        if self.scale == 1:
            return image
        size = (max(1, round(image.width * self.scale)), max(1, round(image.height * self.scale)))
        return image.resize(size, Image.Resampling.BILINEAR)

    def sample_region(self) -> Image.Image:
        """Capture, downsample and crop the board to the sampled square.

        Raises:
            SourceUnavailable: If the surface is missing or has zero extent
        """
        if self.surface is None:
            raise SourceUnavailable("No board surface configured")

        image = self.surface.capture()
        if image is None or image.width == 0 or image.height == 0:
            raise SourceUnavailable("Board surface has zero extent")

        scaled = self._downsample(image.convert('RGB'))
        return scaled.crop(square_crop_box(scaled.width, scaled.height))

    def extract(self) -> BoardGrid:
        """Produce a fresh grid from the current surface contents."""
        start_time = time.perf_counter()
        region = self.sample_region()
        pixels = np.asarray(region)
        side = region.width

        xs = cell_centers(side, self.width)
        ys = cell_centers(side, self.height)

        lookup = {}
        palette: List[HSLColor] = []
        indices = np.full((self.height, self.width), EMPTY_INDEX, dtype=np.int32)

        for y, py in enumerate(ys):
            for x, px in enumerate(xs):
                color = self.normalizer(pixels[py, px])
                if color is None:
                    continue
                if color not in lookup:
                    lookup[color] = len(palette)
                    palette.append(color)
                indices[y, x] = lookup[color]

        grid = BoardGrid(indices, palette)
        self.extractions += 1
        self._publish_preview(region)

        elapsed = time.perf_counter() - start_time
        logger.debug(f"Extracted {grid!r} from {side}x{side} region in {elapsed * 1000:.1f}ms")
        return grid

    def _publish_preview(self, region: Image.Image) -> None:
        self.last_preview = region
        if self.preview_sink is None:
            return
        try:
            self.preview_sink(region.copy())
        except Exception as e:
            logger.warning(f"Preview sink failed: {e}")


def save_preview_to(path) -> PreviewSink:
    """Preview sink that writes the sampled region to an image file."""
    def sink(image: Image.Image) -> None:
        image.save(path)
    return sink
