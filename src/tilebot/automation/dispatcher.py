"""Translation of logical cell actions into synthetic clicks."""

import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

from tilebot.core.data_models import Action, BoardGeometry, Point
from .scheduling import Scheduler

logger = logging.getLogger(__name__)


class PointerInjector(ABC):
    """Platform facility that synthesizes primary-button events at a point.

    Implementations target whatever element occupies the point and no-op
    silently when there is none.
    """

    @abstractmethod
    def press(self, point: Point) -> None:
        pass

    @abstractmethod
    def release(self, point: Point) -> None:
        pass


class Indicator(ABC):
    """Visible marker that shows where the next click lands."""

    @abstractmethod
    def move_to(self, point: Point) -> None:
        pass

    @abstractmethod
    def mark_arrived(self) -> None:
        pass


class LoggingInjector(PointerInjector):
    """Injector for dry runs: records events instead of sending them."""

    def __init__(self):
        self.events: List[Tuple[str, Point]] = []

    def press(self, point: Point) -> None:
        self.events.append(('press', point))
        logger.info(f"[dry-run] press at ({point.x}, {point.y})")

    def release(self, point: Point) -> None:
        self.events.append(('release', point))
        logger.info(f"[dry-run] release at ({point.x}, {point.y})")


class LoggingIndicator(Indicator):

    def __init__(self):
        self.position = None
        self.arrived = False

    def move_to(self, point: Point) -> None:
        self.position = point
        self.arrived = False
        logger.debug(f"Indicator moved to ({point.x}, {point.y})")

    def mark_arrived(self) -> None:
        self.arrived = True


def cell_to_point(action: Action, geometry: BoardGeometry, width: int, height: int) -> Point:
    """Screen point at the center of a cell.

    Uses the same centered-square crop as the grid extractor, so that logical
    coordinates map onto the cells that were sampled.
    """
    if not (0 <= action.x < width and 0 <= action.y < height):
        raise ValueError(f"Action ({action.x}, {action.y}) outside {width}x{height} grid")

    side = min(geometry.width, geometry.height)
    offset_x = (geometry.width - side) / 2
    offset_y = (geometry.height - side) / 2
    tile_w = side / width
    tile_h = side / height

    return Point(
        x=int(geometry.left + offset_x + (action.x + 0.5) * tile_w),
        y=int(geometry.top + offset_y + (action.y + 0.5) * tile_h),
    )


class ActionDispatcher:
    """Moves the indicator to a cell and clicks it after a settle delay."""

    def __init__(self,
                 injector: PointerInjector,
                 indicator: Indicator,
                 scheduler: Scheduler,
                 width: int = 10,
                 height: int = 10,
                 settle_delay: float = 0.25):
        self.injector = injector
        self.indicator = indicator
        self.scheduler = scheduler
        self.width = width
        self.height = height
        self.settle_delay = settle_delay
        self.dispatched = 0
        self.failed = 0

    def dispatch(self, action: Action, geometry: BoardGeometry) -> Point:
        """Animate towards the cell, then press and release there.

        Returns:
            The physical point the click will land on
        """
        point = cell_to_point(action, geometry, self.width, self.height)
        logger.info(f"Click ({action.x}, {action.y}) -> screen ({point.x}, {point.y})")

        self.indicator.move_to(point)
        self.indicator.mark_arrived()
        self.scheduler.call_later(self.settle_delay, lambda: self._click(point))
        return point

    def _click(self, point: Point) -> None:
        # press and release back to back in one callback turn
        try:
            self.injector.press(point)
            self.injector.release(point)
        except Exception as e:
            self.failed += 1
            logger.error(f"Click at ({point.x}, {point.y}) failed: {e}")
            return
        self.dispatched += 1
