"""Core data models for tilebot."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import hashlib
import json
import re
import numpy as np


_HSL_PATTERN = re.compile(r"^hsl\(\s*(-?\d+)\s*,\s*(-?\d+)%\s*,\s*(-?\d+)%\s*\)$")


@dataclass(frozen=True)
class HSLColor:
    """Canonical board color: integer hue (degrees), saturation and lightness (percent)."""

    h: int
    s: int
    l: int

    def __str__(self) -> str:
        return f"hsl({self.h}, {self.s}%, {self.l}%)"

    @classmethod
    def from_string(cls, text: str) -> 'HSLColor':
        """Parse the ``hsl(h, s%, l%)`` key form."""
        match = _HSL_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid color key: {text!r}")
        return cls(*(int(group) for group in match.groups()))

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'HSLColor':
        return cls(int(data['h']), int(data['s']), int(data['l']))


# Empty cells carry no color
EMPTY: Optional[HSLColor] = None
EMPTY_INDEX = -1

# One character per palette index in text renderings
PALETTE_SYMBOLS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz'


@dataclass(frozen=True)
class Action:
    """A logical cell to perform the board's primary interaction on."""

    x: int
    y: int

    def __iter__(self) -> Iterator[int]:
        return iter((self.x, self.y))

    @classmethod
    def from_pair(cls, pair: Sequence[int]) -> 'Action':
        if len(pair) != 2:
            raise ValueError(f"Action needs exactly two coordinates, got {pair!r}")
        return cls(int(pair[0]), int(pair[1]))


@dataclass(frozen=True)
class Point:
    """Physical screen coordinate."""

    x: int
    y: int


@dataclass(frozen=True)
class BoardGeometry:
    """On-screen position and size of the board surface."""

    left: float
    top: float
    width: float
    height: float


class BoardGrid:
    """Immutable W x H grid of canonical colors.

    Cells are stored as palette indices in a read-only int32 array of shape
    (height, width); ``EMPTY_INDEX`` marks an empty cell. Cell (x, y) addresses
    column x, row y.
    """

    def __init__(self, indices: np.ndarray, palette: Sequence[HSLColor]):
        indices = np.array(indices, dtype=np.int32)
        assert indices.ndim == 2, f"Expected 2D index array, got shape {indices.shape}"
        palette = tuple(palette)
        assert len(set(palette)) == len(palette), "Palette must not contain duplicates"
        assert all(color is not None for color in palette), "Palette must not contain the empty marker"
        if indices.size:
            assert indices.min() >= EMPTY_INDEX and indices.max() < len(palette), \
                "Cell index out of palette range"

        indices.setflags(write=False)
        self._indices = indices
        self._palette = palette

    @classmethod
    def from_cells(cls, rows: Sequence[Sequence[Optional[HSLColor]]]) -> 'BoardGrid':
        """Build a grid from row-major cells (``rows[y][x]``).

        The palette is ordered by first appearance in row-major order.
        """
        lookup: Dict[HSLColor, int] = {}
        height = len(rows)
        width = len(rows[0]) if height else 0
        indices = np.full((height, width), EMPTY_INDEX, dtype=np.int32)

        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"Row {y} has {len(row)} cells, expected {width}")
            for x, color in enumerate(row):
                if color is None:
                    continue
                if color not in lookup:
                    lookup[color] = len(lookup)
                indices[y, x] = lookup[color]

        return cls(indices, list(lookup))

    @property
    def width(self) -> int:
        return int(self._indices.shape[1])

    @property
    def height(self) -> int:
        return int(self._indices.shape[0])

    @property
    def palette(self) -> Tuple[HSLColor, ...]:
        return self._palette

    @property
    def indices(self) -> np.ndarray:
        """Read-only palette index array of shape (height, width)."""
        return self._indices

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> Optional[HSLColor]:
        """Color at column x, row y, or None when the cell is empty."""
        if not self.contains(x, y):
            raise IndexError(f"Cell ({x}, {y}) outside {self.width}x{self.height} grid")
        index = int(self._indices[y, x])
        return None if index == EMPTY_INDEX else self._palette[index]

    def is_empty(self, x: int, y: int) -> bool:
        return self.cell(x, y) is None

    def empty_count(self) -> int:
        return int(np.count_nonzero(self._indices == EMPTY_INDEX))

    def rows(self) -> List[List[Optional[HSLColor]]]:
        return [[self.cell(x, y) for x in range(self.width)] for y in range(self.height)]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize as ``{"width", "height", "colors", "data"}`` with ``data[x][y]``."""
        data = [
            [None if self.cell(x, y) is None else str(self.cell(x, y)) for y in range(self.height)]
            for x in range(self.width)
        ]
        return {
            'width': self.width,
            'height': self.height,
            'colors': [str(color) for color in self._palette],
            'data': data,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'BoardGrid':
        width = int(payload['width'])
        height = int(payload['height'])
        columns = payload['data']
        if len(columns) != width or any(len(column) != height for column in columns):
            raise ValueError(f"Grid data does not match declared size {width}x{height}")

        rows = [
            [None if columns[x][y] is None else HSLColor.from_string(columns[x][y]) for x in range(width)]
            for y in range(height)
        ]
        return cls.from_cells(rows)

    def fingerprint(self) -> str:
        """SHA-1 of the serialized cells, independent of palette order."""
        cells = json.dumps(self.to_dict()['data'], separators=(',', ':'))
        return hashlib.sha1(cells.encode()).hexdigest()

    def render(self, empty: str = '.') -> str:
        """Text rendering, one letter per palette color."""
        lines = []
        for y in range(self.height):
            line = []
            for x in range(self.width):
                index = int(self._indices[y, x])
                if index == EMPTY_INDEX:
                    line.append(empty)
                else:
                    line.append(PALETTE_SYMBOLS[index % len(PALETTE_SYMBOLS)])
            lines.append(''.join(line))
        return '\n'.join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoardGrid):
            return NotImplemented
        return self.rows() == other.rows()

    def __hash__(self) -> int:
        return hash(self.fingerprint())

    def __repr__(self) -> str:
        return f"BoardGrid({self.width}x{self.height}, colors={len(self._palette)})"


# Type aliases for clarity
ColorSample = Tuple[int, int, int]  # (r, g, b) in [0, 255]
Solution = List[Action]
