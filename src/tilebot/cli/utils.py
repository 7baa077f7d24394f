"""CLI utility functions."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from omegaconf import DictConfig

from tilebot.core.data_models import PALETTE_SYMBOLS, BoardGrid
from tilebot.perception.grid_extractor import PreviewSink, save_preview_to
from tilebot.perception.surface import BoardSurface, ImageFileSurface
from tilebot.solver.adapters import CommandSolver, Solver, StaticSolver


def setup_logging(level: int = logging.INFO,
                  format_string: Optional[str] = None) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level
        format_string: Custom format string
    """
    if format_string is None:
        if level <= logging.DEBUG:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(asctime)s %(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Reduce noise from some libraries
    logging.getLogger('PIL').setLevel(logging.WARNING)


def build_surface(config: DictConfig, image_path: Optional[str] = None) -> BoardSurface:
    """Create the board surface described by the ``surface`` config section.

    An explicit ``image_path`` takes precedence over the configured kind.
    """
    surface_cfg = config.get('surface', {})
    region = surface_cfg.get('region', {})
    origin = (region.get('left', 0), region.get('top', 0))

    if image_path is None and surface_cfg.get('kind', 'screen') == 'image':
        image_path = surface_cfg.get('image_path')
        if not image_path:
            raise ValueError("surface.kind is 'image' but surface.image_path is not set")

    if image_path is not None:
        return ImageFileSurface(image_path, origin=origin)

    from tilebot.platform.desktop import ScreenRegionSurface
    return ScreenRegionSurface(
        region.get('left', 0), region.get('top', 0), region.get('width', 0), region.get('height', 0)
    )


def build_solver(config: DictConfig,
                 solution_file: Optional[str] = None,
                 command: Optional[str] = None) -> Optional[Solver]:
    """Create the solver adapter; a solution file wins over a command."""
    if solution_file:
        return StaticSolver.from_file(solution_file)

    solver_cfg = config.get('solver', {})
    command = command or solver_cfg.get('command')
    if not command:
        return None
    return CommandSolver(command, timeout_seconds=float(solver_cfg.get('timeout_seconds', 30.0)))


def build_preview_sink(config: DictConfig) -> Optional[PreviewSink]:
    path = config.get('preview', {}).get('path')
    if not path:
        return None
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return save_preview_to(path)


def format_grid(grid: BoardGrid, as_json: bool = False) -> str:
    """Render a grid for the terminal, or as the JSON document the solver reads."""
    if as_json:
        return json.dumps(grid.to_dict(), indent=2)

    lines = [grid.render(), ""]
    for index, color in enumerate(grid.palette):
        lines.append(f"  {PALETTE_SYMBOLS[index % len(PALETTE_SYMBOLS)]} = {color}")
    lines.append(f"  {grid.empty_count()} empty of {grid.width * grid.height} cells")
    return '\n'.join(lines)


def save_json(data: Dict[str, Any], output_file: Union[str, Path]) -> None:
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2)
