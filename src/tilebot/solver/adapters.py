"""Adapters for the external puzzle solver.

The solver is an opaque function from a ``BoardGrid`` to an ordered list of
``Action`` cells. The grid is exchanged as the JSON document produced by
``BoardGrid.to_dict``; a solution is a JSON list of ``[x, y]`` pairs.
"""

import json
import logging
import shlex
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Sequence, Union

from tilebot.core.data_models import Action, BoardGrid
from tilebot.core.errors import SolverError

logger = logging.getLogger(__name__)


def parse_solution(payload: Any, grid: BoardGrid) -> List[Action]:
    """Validate a decoded solution against the grid it was produced for.

    Raises:
        SolverError: If the payload is not a list of in-bounds ``[x, y]`` pairs
    """
    if isinstance(payload, dict) and 'solution' in payload:
        payload = payload['solution']
    if not isinstance(payload, list):
        raise SolverError(f"Solution must be a list, got {type(payload).__name__}")

    actions = []
    for i, item in enumerate(payload):
        try:
            action = item if isinstance(item, Action) else Action.from_pair(item)
        except (TypeError, ValueError) as e:
            raise SolverError(f"Solution step {i} is malformed: {item!r} ({e})")
        if not grid.contains(action.x, action.y):
            raise SolverError(
                f"Solution step {i} ({action.x}, {action.y}) outside {grid.width}x{grid.height} grid"
            )
        actions.append(action)
    return actions


class Solver(ABC):
    """External collaborator mapping a grid to a solution."""

    @abstractmethod
    def solve(self, grid: BoardGrid) -> List[Action]:
        pass


class StaticSolver(Solver):
    """Replays a fixed solution regardless of the grid."""

    def __init__(self, actions: Sequence[Union[Action, Sequence[int]]]):
        self.actions = [a if isinstance(a, Action) else Action.from_pair(a) for a in actions]

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'StaticSolver':
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Solution file not found: {path}")
        try:
            with open(path, 'r') as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}")
        if isinstance(payload, dict):
            payload = payload.get('solution', [])
        return cls(payload)

    def solve(self, grid: BoardGrid) -> List[Action]:
        return parse_solution(list(self.actions), grid)


class CommandSolver(Solver):
    """Runs an external solver command.

    The grid JSON is written to the command's stdin; the solution is read from
    its stdout.
    """

    def __init__(self, command: Union[str, Sequence[str]], timeout_seconds: float = 30.0):
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ValueError("Solver command must not be empty")
        self.timeout_seconds = timeout_seconds

    def solve(self, grid: BoardGrid) -> List[Action]:
        request = json.dumps(grid.to_dict())
        start_time = time.perf_counter()

        try:
            result = subprocess.run(
                self.command,
                input=request,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            raise SolverError(f"Solver timed out after {self.timeout_seconds}s")
        except OSError as e:
            raise SolverError(f"Failed to start solver {self.command[0]!r}: {e}")

        if result.returncode != 0:
            stderr = result.stderr.strip()[:500]
            raise SolverError(f"Solver exited with code {result.returncode}: {stderr}")

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise SolverError(f"Solver produced invalid JSON: {e}")

        actions = parse_solution(payload, grid)
        elapsed = time.perf_counter() - start_time
        logger.info(f"Solver returned {len(actions)} actions in {elapsed:.2f}s")
        return actions
