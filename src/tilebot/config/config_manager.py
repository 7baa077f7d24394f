"""Hydra-backed loading of the tilebot configuration tree."""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra
from omegaconf import DictConfig, OmegaConf

from .validators import validate_config

logger = logging.getLogger(__name__)

# Most recently loaded configuration, shared by get_config/get_parameter
_active_config: Optional[DictConfig] = None


def default_config_dir() -> Path:
    """The ``conf`` directory at the project root."""
    return Path(__file__).parent.parent.parent.parent / "conf"


class ConfigManager:
    """Composes ``conf/<name>.yaml`` with dotted overrides through Hydra."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        self.config_dir = Path(config_dir or default_config_dir()).resolve()
        if not self.config_dir.is_dir():
            raise FileNotFoundError(f"Config directory does not exist: {self.config_dir}")
        self.config: Optional[DictConfig] = None
        logger.debug(f"Using config directory {self.config_dir}")

    def load_config(self,
                    config_name: str = "config",
                    overrides: Optional[List[str]] = None,
                    validate: bool = True) -> DictConfig:
        """Compose the configuration and make it the active one.

        Args:
            config_name: YAML file name inside the config directory, without suffix
            overrides: ``key=value`` strings, e.g. ``playback.auto_refresh=false``
            validate: Run ``validate_config`` on the composed tree

        Raises:
            ConfigValidationError: If ``validate`` is set and a value is out of range
        """
        global _active_config
        overrides = list(overrides or [])

        # Hydra refuses to initialize twice in one process
        GlobalHydra.instance().clear()
        try:
            with initialize_config_dir(config_dir=str(self.config_dir), version_base=None):
                cfg = compose(config_name=config_name, overrides=overrides)
        except Exception as e:
            logger.error(f"Could not compose '{config_name}' from {self.config_dir}: {e}")
            raise

        if validate:
            validate_config(cfg)

        self.config = cfg
        _active_config = cfg
        logger.info(f"Loaded config '{config_name}'" + (f" with {overrides}" if overrides else ""))
        return cfg

    def get_config(self) -> Optional[DictConfig]:
        return self.config

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``playback.action_interval``."""
        if self.config is None:
            raise RuntimeError("load_config() has not been called")
        return OmegaConf.select(self.config, key, default=default)


def load_config(config_name: str = "config",
                overrides: Optional[List[str]] = None,
                config_dir: Optional[Union[str, Path]] = None,
                validate: bool = True) -> DictConfig:
    """Compose a configuration with a fresh ``ConfigManager``."""
    return ConfigManager(config_dir).load_config(config_name, overrides, validate)


def get_config() -> Optional[DictConfig]:
    """The active configuration, or None before the first load."""
    return _active_config


def get_parameter(key: str, default: Any = None) -> Any:
    if _active_config is None:
        logger.warning(f"No config loaded; returning default for {key}")
        return default
    return OmegaConf.select(_active_config, key, default=default)
