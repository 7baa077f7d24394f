"""External solver integration."""

from .adapters import Solver, StaticSolver, CommandSolver, parse_solution

__all__ = [
    'Solver',
    'StaticSolver',
    'CommandSolver',
    'parse_solution'
]
