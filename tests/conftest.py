"""Shared fixtures for tilebot tests."""

import pytest
from PIL import Image

from tilebot.perception.color import rgb_to_hsl

# Renders as hsl(35, 54%, 93%), the default empty-cell color
EMPTY_RGB = (247, 239, 228)
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
BORDER = (20, 20, 20)


@pytest.fixture
def empty_reference():
    return rgb_to_hsl(*EMPTY_RGB)


@pytest.fixture
def paint_board():
    """Factory drawing a board image from row-major RGB cells.

    ``pad`` adds letterbox bands (left/right or top/bottom) around the square board.
    """
    def paint(rows, cell_px=40, pad=(0, 0, 0, 0), pad_color=BORDER):
        height = len(rows)
        width = len(rows[0])
        left, top, right, bottom = pad
        image = Image.new('RGB',
                          (left + width * cell_px + right, top + height * cell_px + bottom),
                          pad_color)
        for y, row in enumerate(rows):
            for x, rgb in enumerate(row):
                x0 = left + x * cell_px
                y0 = top + y * cell_px
                image.paste(rgb, (x0, y0, x0 + cell_px, y0 + cell_px))
        return image
    return paint


@pytest.fixture
def checker_rows():
    """10x10 rows: red/green checkerboard with an empty first column."""
    rows = []
    for y in range(10):
        row = []
        for x in range(10):
            if x == 0:
                row.append(EMPTY_RGB)
            else:
                row.append(RED if (x + y) % 2 == 0 else GREEN)
        rows.append(row)
    return rows
