"""tilebot - automation overlay for grid-based color puzzles.

Extracts a discrete colored grid from a rendered board, hands it to an external
solver and plays the resulting moves back as synthetic clicks.
"""

__version__ = "0.3.0"
