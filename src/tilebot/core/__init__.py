"""Core data models and errors."""

from .data_models import (
    HSLColor, Action, Point, BoardGeometry, BoardGrid, EMPTY, EMPTY_INDEX, PALETTE_SYMBOLS,
    ColorSample, Solution
)
from .errors import TilebotError, SourceUnavailable, StorageFailure, SolverError

__all__ = [
    'HSLColor',
    'Action',
    'Point',
    'BoardGeometry',
    'BoardGrid',
    'EMPTY',
    'EMPTY_INDEX',
    'PALETTE_SYMBOLS',
    'ColorSample',
    'Solution',
    'TilebotError',
    'SourceUnavailable',
    'StorageFailure',
    'SolverError'
]
