"""Perception layer for tilebot.

This module turns the rendered board into a discrete grid: color
normalization, surface access and grid sampling.
"""

from .color import rgb_to_hsl, normalize_color, ColorNormalizer
from .surface import BoardSurface, StaticImageSurface, ImageFileSurface
from .grid_extractor import GridExtractor, square_crop_box, cell_centers, save_preview_to

__all__ = [
    'rgb_to_hsl',
    'normalize_color',
    'ColorNormalizer',
    'BoardSurface',
    'StaticImageSurface',
    'ImageFileSurface',
    'GridExtractor',
    'square_crop_box',
    'cell_centers',
    'save_preview_to'
]
