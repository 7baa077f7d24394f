"""CLI command implementations."""

import asyncio
import logging

from omegaconf import DictConfig, OmegaConf

from tilebot.automation.dispatcher import LoggingIndicator, LoggingInjector
from tilebot.automation.playback import PlaybackController, create_playback_controller
from tilebot.automation.scheduling import AsyncioScheduler, Scheduler, VirtualScheduler
from tilebot.caching import create_snapshot_cache
from tilebot.config import ConfigValidationError, load_config, validate_config
from tilebot.core.errors import SolverError, SourceUnavailable

from .utils import build_preview_sink, build_solver, build_surface, format_grid, save_json

logger = logging.getLogger(__name__)


def _load(args) -> DictConfig:
    return load_config(overrides=list(getattr(args, 'overrides', None) or []),
                       config_dir=getattr(args, 'config_dir', None))


def _build_controller(config: DictConfig,
                      args,
                      scheduler: Scheduler,
                      dry_run: bool = True) -> PlaybackController:
    surface = build_surface(config, getattr(args, 'image', None))
    if dry_run:
        injector, indicator = LoggingInjector(), LoggingIndicator()
    else:
        from tilebot.platform.desktop import CursorIndicator, PyAutoGuiInjector
        injector, indicator = PyAutoGuiInjector(), CursorIndicator()

    solver = build_solver(config,
                          solution_file=getattr(args, 'solution', None),
                          command=getattr(args, 'solver_cmd', None))
    return create_playback_controller(
        config, surface, injector, indicator, scheduler,
        solver=solver, preview_sink=build_preview_sink(config)
    )


def extract_command(args) -> int:
    """Extract the board once and print it."""
    try:
        config = _load(args)
        controller = _build_controller(config, args, VirtualScheduler())
        grid = controller.extract_grid(persist=not args.no_persist)
    except SourceUnavailable as e:
        logger.error(f"Board unavailable: {e}")
        return 1
    except Exception as e:
        logger.error(f"Extraction failed: {e}")
        return 1

    print(format_grid(grid, as_json=args.json))
    if args.output:
        save_json(grid.to_dict(), args.output)
        logger.info(f"Grid written to {args.output}")
    return 0


async def _play(controller: PlaybackController, poll_interval: float = 0.1) -> None:
    controller.extract_grid(persist=True)
    controller.solve()
    # Settled means exhausted with no refresh scheduled
    while not controller.is_settled:
        await asyncio.sleep(poll_interval)


async def _run_async(config: DictConfig, args) -> int:
    scheduler = AsyncioScheduler(asyncio.get_running_loop())
    controller = _build_controller(config, args, scheduler, dry_run=args.dry_run)
    if controller.solver is None:
        logger.error("No solver configured: pass --solution, --solver-cmd or set solver.command")
        return 1
    if args.no_auto_refresh:
        controller.set_auto_refresh(False)

    try:
        await _play(controller)
    finally:
        controller.stop()

    print(f"Dispatched {controller.dispatcher.dispatched} clicks")
    return 0


def run_command(args) -> int:
    """Extract, solve and play back until the session settles."""
    try:
        config = _load(args)
        return asyncio.run(_run_async(config, args))
    except SourceUnavailable as e:
        logger.error(f"Board unavailable: {e}")
        return 1
    except SolverError as e:
        logger.error(f"Solver failed: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1


def snapshot_command(args) -> int:
    """Show or clear the cached board snapshot."""
    config = _load(args)
    cache = create_snapshot_cache(config.get('cache'))
    if cache is None:
        print("Snapshot cache is disabled.")
        return 1

    if args.snapshot_action == 'clear':
        removed = cache.clear()
        print("Snapshot cleared." if removed else "No snapshot stored.")
        return 0

    grid = cache.load()
    if grid is None:
        print("No snapshot stored.")
        return 1
    print(format_grid(grid, as_json=getattr(args, 'json', False)))
    return 0


def config_command(args) -> int:
    """Handle config subcommands."""
    try:
        if args.config_action == 'show':
            config = load_config(overrides=list(args.overrides or []), config_dir=args.config_dir,
                                 validate=False)
            print(OmegaConf.to_yaml(config))
            return 0

        if args.config_action == 'validate':
            config = load_config(overrides=list(args.overrides or []), config_dir=args.config_dir,
                                 validate=False)
            validate_config(config)
            print("Configuration is valid.")
            return 0

        print("Usage: tilebot config {show,validate}")
        return 1

    except ConfigValidationError as e:
        print(f"Configuration is invalid: {e}")
        return 1
