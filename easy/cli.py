# EASY/easy/cli.py

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from easy import __version__
from easy import console_output as con
from easy.app import run_app
from easy.config import BUILTIN_SETUPS_DIR, PROGRESS_MODES
from easy.config_loader import load_configuration, validate_settings
from easy.errors import ConfigError, EnvironmentFatalError
from easy.logger_utils import app_logger, setup_logger
from easy.preflight import run_preflight
from easy.repo_sync import sync_repository


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easy",
        description="EASY - Effortless Automated Self-hosting for You. "
                    "Pick self-hosting setup scripts from a checklist and run them.",
    )
    parser.add_argument("--config", help="Path to an easy.json configuration file.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--builtin", action="store_true",
                        help="Run the setup scripts bundled with EASY instead of cloning the repository.")
    source.add_argument("--dir", type=Path, help="Discover setup scripts in this directory (no repository sync).")
    parser.add_argument("--progress", choices=list(PROGRESS_MODES), help="How to show script progress.")
    parser.add_argument("--strict", action="store_true", help="Stop at the first failing setup script.")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Runs EASY and returns the exit status."""
    args = build_parser().parse_args(argv)
    if args.debug:
        setup_logger(log_level=logging.DEBUG)
    app_logger.info("EASY started.")

    try:
        settings = load_configuration(args.config)
        if args.builtin:
            settings["script_source"] = "builtin"
        if args.progress:
            settings["progress_mode"] = args.progress
        if args.strict:
            settings["continue_on_failure"] = False
        validate_settings(settings)

        run_preflight()

        if args.dir:
            script_dir = args.dir.expanduser()
        elif settings["script_source"] == "builtin":
            script_dir = BUILTIN_SETUPS_DIR
        else:
            script_dir = sync_repository(settings["repo_url"], Path(settings["target_dir"]))

        return run_app(settings, script_dir)
    except (EnvironmentFatalError, ConfigError) as e:
        app_logger.error(str(e))
        con.print_error(str(e))
        return 1
    except (KeyboardInterrupt, EOFError):
        app_logger.info("Cancelled by user.")
        con.print_info("\nOperation cancelled by user. Exiting.")
        return 0
    finally:
        app_logger.info("EASY finished.")
