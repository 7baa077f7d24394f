"""Automation layer for tilebot.

This module plays solutions back against the board: timer scheduling,
click dispatch and the playback state machine.
"""

from .scheduling import Scheduler, AsyncioScheduler, VirtualScheduler, TimerHandle
from .dispatcher import (
    ActionDispatcher, PointerInjector, Indicator, LoggingInjector, LoggingIndicator, cell_to_point
)
from .playback import (
    PlaybackController, PlaybackSession, PlaybackState, create_playback_controller
)

__all__ = [
    'Scheduler',
    'AsyncioScheduler',
    'VirtualScheduler',
    'TimerHandle',
    'ActionDispatcher',
    'PointerInjector',
    'Indicator',
    'LoggingInjector',
    'LoggingIndicator',
    'cell_to_point',
    'PlaybackController',
    'PlaybackSession',
    'PlaybackState',
    'create_playback_controller'
]
