"""Timed playback of a solution against the live board."""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Optional, Sequence, Union

from omegaconf import DictConfig

from tilebot.caching.snapshot_cache import BoardSnapshotCache, create_snapshot_cache
from tilebot.core.data_models import Action, BoardGrid, HSLColor
from tilebot.core.errors import SolverError, SourceUnavailable
from tilebot.perception.color import ColorNormalizer
from tilebot.perception.grid_extractor import GridExtractor, PreviewSink
from tilebot.perception.surface import BoardSurface
from tilebot.solver.adapters import Solver
from .dispatcher import ActionDispatcher, Indicator, PointerInjector
from .scheduling import Scheduler

logger = logging.getLogger(__name__)

GridListener = Callable[[BoardGrid], None]
StateListener = Callable[['PlaybackState'], None]


class PlaybackState(Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    WAITING = "waiting"
    EXHAUSTED = "exhausted"


@dataclass
class PlaybackSession:
    """Live state of one solution being played back."""

    queue: Deque[Action]
    total: int
    dispatched: int = 0
    history: List[Action] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return len(self.queue)


class PlaybackController:
    """State machine that plays a solution back one action per tick.

    Each tick re-extracts the grid without persisting it, pops the next action
    and dispatches it, then schedules the following tick after
    ``action_interval``. When the queue runs dry the controller is exhausted;
    with auto-refresh on it schedules a persisted refresh followed by a new
    solve on the refreshed grid.

    At most one controller timer is outstanding at any time. Starting a new
    solution or requesting a manual refresh cancels it first.
    """

    def __init__(self,
                 extractor: GridExtractor,
                 dispatcher: ActionDispatcher,
                 scheduler: Scheduler,
                 solver: Optional[Solver] = None,
                 cache: Optional[BoardSnapshotCache] = None,
                 action_interval: float = 2.25,
                 refresh_delay: float = 10.0,
                 resolve_delay: float = 0.5,
                 auto_refresh: bool = True):
        if action_interval <= dispatcher.settle_delay:
            raise ValueError(
                f"action_interval ({action_interval}) must exceed the dispatcher settle delay "
                f"({dispatcher.settle_delay})"
            )

        self.extractor = extractor
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.solver = solver
        self.cache = cache
        self.action_interval = action_interval
        self.refresh_delay = refresh_delay
        self.resolve_delay = resolve_delay
        self.auto_refresh = auto_refresh

        self.state = PlaybackState.IDLE
        self.grid: Optional[BoardGrid] = None
        self.session: Optional[PlaybackSession] = None
        self._timer = None
        self._last_solved: Optional[str] = None
        self._grid_listeners: List[GridListener] = []
        self._state_listeners: List[StateListener] = []

    # Observers

    def add_grid_listener(self, listener: GridListener) -> None:
        self._grid_listeners.append(listener)

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def _set_state(self, state: PlaybackState) -> None:
        if state is self.state:
            return
        logger.debug(f"Playback state {self.state.value} -> {state.value}")
        self.state = state
        for listener in self._state_listeners:
            listener(state)

    # Timer

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    @property
    def is_settled(self) -> bool:
        """True when nothing is playing and nothing is scheduled."""
        return self.state in (PlaybackState.IDLE, PlaybackState.EXHAUSTED) and self._timer is None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("Cancelled pending playback timer")

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._cancel_timer()

        def fire() -> None:
            self._timer = None
            callback()

        self._timer = self.scheduler.call_later(delay, fire)

    # Public operations

    def set_auto_refresh(self, enabled: bool) -> None:
        """Toggle auto-refresh; only read when the queue next runs dry."""
        self.auto_refresh = bool(enabled)
        logger.info(f"Auto-refresh {'enabled' if self.auto_refresh else 'disabled'}")

    def extract_grid(self, persist: bool = True) -> BoardGrid:
        """Extract a fresh grid and make it current.

        Raises:
            SourceUnavailable: If the board cannot be read; the previous grid
                stays current
        """
        grid = self.extractor.extract()
        self.grid = grid
        if persist and self.cache is not None:
            self.cache.save(grid)
        for listener in self._grid_listeners:
            listener(grid)
        return grid

    def run_solution(self, actions: Sequence[Union[Action, Sequence[int]]]) -> None:
        """Start playing ``actions``, pre-empting any session in progress."""
        queue = deque(a if isinstance(a, Action) else Action.from_pair(a) for a in actions)
        for action in queue:
            if not (0 <= action.x < self.dispatcher.width and 0 <= action.y < self.dispatcher.height):
                raise ValueError(
                    f"Action ({action.x}, {action.y}) outside "
                    f"{self.dispatcher.width}x{self.dispatcher.height} grid"
                )

        self._cancel_timer()
        if self.session is not None and self.session.remaining:
            logger.info(f"Pre-empting session with {self.session.remaining} actions left")

        self.session = PlaybackSession(queue=queue, total=len(queue))
        logger.info(f"Starting playback of {len(queue)} actions")
        self._tick()

    def solve(self) -> List[Action]:
        """Request a solution for the current grid and play it.

        Raises:
            SolverError: If no solver is configured or the solver fails
            SourceUnavailable: If no grid exists yet and the board cannot be read
        """
        if self.solver is None:
            raise SolverError("No solver configured")
        if self.grid is None:
            self.extract_grid(persist=True)

        fingerprint = self.grid.fingerprint()
        if fingerprint == self._last_solved:
            logger.info("Grid unchanged since the last solve; solving again")
        self._last_solved = fingerprint

        solution = self.solver.solve(self.grid)
        self.run_solution(solution)
        return solution

    def request_manual_refresh(self) -> BoardGrid:
        """Drop the current session and extract a persisted grid without solving."""
        self._cancel_timer()
        if self.session is not None:
            self.session.queue.clear()
            self.session = None
        self._set_state(PlaybackState.IDLE)
        logger.info("Manual refresh requested")
        return self.extract_grid(persist=True)

    def stop(self) -> None:
        self._cancel_timer()
        self.session = None
        self._set_state(PlaybackState.IDLE)

    # Transitions

    def _tick(self) -> None:
        self._set_state(PlaybackState.DISPATCHING)
        session = self.session
        try:
            self.extract_grid(persist=False)
        except SourceUnavailable as e:
            # No clicks without a readable board
            logger.warning(f"Board unavailable, dropping {session.remaining} queued actions: {e}")
            session.queue.clear()
            self._exhaust()
            return
        except Exception as e:
            self._abort(f"Re-extraction failed: {e}")
            return

        if not session.queue:
            self._exhaust()
            return

        geometry = self.extractor.surface.geometry()
        if geometry.width <= 0 or geometry.height <= 0:
            logger.warning(f"Board has zero extent, dropping {session.remaining} queued actions")
            session.queue.clear()
            self._exhaust()
            return

        action = session.queue.popleft()
        try:
            self.dispatcher.dispatch(action, geometry)
        except Exception as e:
            self._abort(f"Dispatch of ({action.x}, {action.y}) failed: {e}")
            return
        session.dispatched += 1
        session.history.append(action)

        self._set_state(PlaybackState.WAITING)
        self._schedule(self.action_interval, self._tick)

    def _exhaust(self) -> None:
        self._set_state(PlaybackState.EXHAUSTED)
        logger.info(f"Playback finished after {self.session.dispatched} actions")
        if self.auto_refresh:
            logger.info(f"Refreshing board in {self.refresh_delay}s")
            self._schedule(self.refresh_delay, self._refresh_then_resolve)

    def _abort(self, reason: str) -> None:
        """Stop playback after an unexpected failure, leaving nothing scheduled."""
        logger.error(f"{reason}; playback stopped")
        self._cancel_timer()
        self.session = None
        self._set_state(PlaybackState.EXHAUSTED)

    def _refresh_then_resolve(self) -> None:
        try:
            self.extract_grid(persist=True)
        except SourceUnavailable as e:
            logger.error(f"Scheduled refresh failed: {e}")
            return
        except Exception as e:
            self._abort(f"Scheduled refresh failed: {e}")
            return
        self._schedule(self.resolve_delay, self._resolve)

    def _resolve(self) -> None:
        try:
            self.solve()
        except SolverError as e:
            logger.error(f"Re-solve failed: {e}")
        except Exception as e:
            self._abort(f"Re-solve failed: {e}")


def create_playback_controller(config: DictConfig,
                               surface: BoardSurface,
                               injector: PointerInjector,
                               indicator: Indicator,
                               scheduler: Scheduler,
                               solver: Optional[Solver] = None,
                               preview_sink: Optional[PreviewSink] = None) -> PlaybackController:
    """Factory function wiring a controller from the loaded configuration."""
    board_cfg = config.get('board', {})
    playback_cfg = config.get('playback', {})

    width = int(board_cfg.get('width', 10))
    height = int(board_cfg.get('height', 10))
    empty_cfg = board_cfg.get('empty_color', {'h': 35, 's': 54, 'l': 93})

    extractor = GridExtractor(
        surface,
        ColorNormalizer(HSLColor.from_mapping(empty_cfg)),
        width=width,
        height=height,
        scale=float(board_cfg.get('scale', 0.25)),
        preview_sink=preview_sink,
    )
    dispatcher = ActionDispatcher(
        injector,
        indicator,
        scheduler,
        width=width,
        height=height,
        settle_delay=float(playback_cfg.get('settle_delay', 0.25)),
    )
    return PlaybackController(
        extractor,
        dispatcher,
        scheduler,
        solver=solver,
        cache=create_snapshot_cache(config.get('cache')),
        action_interval=float(playback_cfg.get('action_interval', 2.25)),
        refresh_delay=float(playback_cfg.get('refresh_delay', 10.0)),
        resolve_delay=float(playback_cfg.get('resolve_delay', 0.5)),
        auto_refresh=bool(playback_cfg.get('auto_refresh', True)),
    )
