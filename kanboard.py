#!/usr/bin/env python3
"""Launcher for the kanban board client."""

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version as pkg_version
from pathlib import Path

import config as board_config
from core.board.interface.tui_requests import RequestContext
from core.board.interface.tui_runtime import run_board
from infrastructure.memory_service import InMemoryBoardService, seed_demo_service

logger = logging.getLogger("kanboard")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(prog="kanboard", description="Terminal kanban board")
    parser.add_argument("--config", type=Path, default=None, help=f"config file (default: {board_config.USER_CONFIG_PATH})")
    parser.add_argument("--demo", action="store_true", help="start with a small sample board")
    parser.add_argument("--mouse-select", action="store_true", help="leave the mouse to the terminal for text selection")
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    return parser


def configure_logging(options: board_config.BoardOptions) -> None:
    # The board owns the terminal; without a log file only errors reach stderr.
    level = getattr(logging, options.log_level.upper(), logging.INFO)
    if options.log_file:
        logging.basicConfig(
            filename=options.log_file,
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.ERROR)


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    if args.version:
        try:
            print(pkg_version("kanboard-tui"))
        except PackageNotFoundError:
            print("0.0.0")
        return 0
    try:
        options = board_config.load_board_options(args.config)
    except board_config.ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2
    if args.mouse_select:
        options.mouse_selection_mode = True
    configure_logging(options)
    service = seed_demo_service(options.display_name) if args.demo else InMemoryBoardService(actor=options.display_name)
    ctx = RequestContext(service=service, config_path=args.config, actor=options.display_name)
    logger.info("starting with config %s", args.config or board_config.USER_CONFIG_PATH)
    return run_board(ctx, options)


if __name__ == "__main__":
    sys.exit(main())
