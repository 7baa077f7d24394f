"""Configuration validation for tilebot."""

import logging
from typing import Any
from omegaconf import DictConfig

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: DictConfig) -> None:
    """Validate the complete configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validate_board_config(config.get('board', {}))
        validate_surface_config(config.get('surface', {}))
        validate_playback_config(config.get('playback', {}))
        validate_cache_config(config.get('cache', {}))
        validate_solver_config(config.get('solver', {}))

        logger.debug("Configuration validation passed")

    except ConfigValidationError:
        raise
    except Exception as e:
        raise ConfigValidationError(f"Configuration validation failed: {e}")


def validate_board_config(board_config: DictConfig) -> None:
    """Validate board configuration section."""
    if not board_config:
        return

    for key in ['width', 'height']:
        value = board_config.get(key, 10)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigValidationError(f"board.{key} must be a positive integer, got {value}")

    scale = board_config.get('scale', 0.25)
    if not _is_number(scale) or not 0 < scale <= 1:
        raise ConfigValidationError(f"board.scale must be in (0, 1], got {scale}")

    empty_color = board_config.get('empty_color', {})
    if empty_color:
        limits = {'h': 360, 's': 100, 'l': 100}
        for component, upper in limits.items():
            value = empty_color.get(component)
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= upper:
                raise ConfigValidationError(
                    f"board.empty_color.{component} must be an integer in [0, {upper}], got {value}"
                )


def validate_surface_config(surface_config: DictConfig) -> None:
    """Validate surface configuration section."""
    if not surface_config:
        return

    kind = surface_config.get('kind', 'screen')
    if kind not in ('screen', 'image'):
        raise ConfigValidationError(f"surface.kind must be 'screen' or 'image', got {kind}")

    if kind == 'screen':
        region = surface_config.get('region', {})
        for key in ['left', 'top', 'width', 'height']:
            if not _is_number(region.get(key)):
                raise ConfigValidationError(f"surface.region.{key} must be a number")
        if region.get('width') <= 0 or region.get('height') <= 0:
            raise ConfigValidationError("surface.region must have a positive width and height")


def validate_playback_config(playback_config: DictConfig) -> None:
    """Validate playback configuration section.

    The action interval has to exceed the settle delay, otherwise a click
    could still be pending when the next action starts.
    """
    if not playback_config:
        return

    for key in ['action_interval', 'settle_delay', 'refresh_delay', 'resolve_delay']:
        value = playback_config.get(key, 0.0)
        if not _is_number(value) or value < 0:
            raise ConfigValidationError(f"playback.{key} must be a non-negative number, got {value}")

    interval = playback_config.get('action_interval', 2.25)
    settle = playback_config.get('settle_delay', 0.25)
    if interval <= settle:
        raise ConfigValidationError(
            f"playback.action_interval ({interval}) must exceed playback.settle_delay ({settle})"
        )

    auto_refresh = playback_config.get('auto_refresh', True)
    if not isinstance(auto_refresh, bool):
        raise ConfigValidationError(f"playback.auto_refresh must be a boolean, got {auto_refresh}")


def validate_cache_config(cache_config: DictConfig) -> None:
    if not cache_config:
        return

    key = cache_config.get('key', 'lastMatrix')
    if not isinstance(key, str) or not key:
        raise ConfigValidationError(f"cache.key must be a non-empty string, got {key}")


def validate_solver_config(solver_config: DictConfig) -> None:
    if not solver_config:
        return

    timeout = solver_config.get('timeout_seconds', 30.0)
    if not _is_number(timeout) or timeout <= 0:
        raise ConfigValidationError(f"solver.timeout_seconds must be positive number, got {timeout}")
