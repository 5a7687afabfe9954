"""
ThunderBBS Entry Point

Usage:
    python -m thunderbbs                      # Run BBS server
    python -m thunderbbs config --show        # Configuration commands
    python -m thunderbbs user --promote NAME  # Make NAME a sysop
    python -m thunderbbs --help               # Show help
"""

import argparse
import sys
import logging
from pathlib import Path

from . import __version__


def setup_logging(level: str, log_file: str | None = None):
    """Configure logging for the application."""
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    handlers = [logging.StreamHandler()]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        handlers=handlers
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="thunderbbs",
        description="ThunderBBS - Multi-user BBS over Telnet and a web JSON API"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"ThunderBBS {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=Path("config.toml"),
        help="Path to configuration file (default: config.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from config, else INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Config subcommand
    config_parser = subparsers.add_parser("config", help="Configuration commands")
    config_parser.add_argument("--show", action="store_true", help="Show current config")
    config_parser.add_argument("--validate", action="store_true", help="Validate config")
    config_parser.add_argument("--init", action="store_true", help="Write a default config file")
    config_parser.add_argument("--force", action="store_true", help="Overwrite with --init")
    config_parser.add_argument(
        "--set",
        nargs=2,
        metavar=("KEY", "VALUE"),
        help="Set config value"
    )

    # User subcommand
    user_parser = subparsers.add_parser("user", help="User administration")
    user_group = user_parser.add_mutually_exclusive_group()
    user_group.add_argument("--list", action="store_true", help="List registered users")
    user_group.add_argument("--promote", metavar="USERNAME", help="Grant sysop role")
    user_group.add_argument("--demote", metavar="USERNAME", help="Revoke sysop role")

    return parser


def main():
    """Main entry point for ThunderBBS."""
    args = build_parser().parse_args()

    if args.command == "config":
        setup_logging(args.log_level or "INFO")
        from .cli.config_menu import run_config
        sys.exit(run_config(args))

    if args.command == "user":
        setup_logging(args.log_level or "WARNING")
        from .cli.users import run_user
        sys.exit(run_user(args))

    # Default: run BBS server
    from .core.bbs import ThunderBBS
    from .config import load_config

    config = load_config(args.config)
    setup_logging(args.log_level or config.logging.level, config.logging.file or None)
    logger = logging.getLogger("thunderbbs")

    errors = config.validate()
    if errors:
        for err in errors:
            logger.error(f"Config error: {err}")
        sys.exit(1)

    try:
        bbs = ThunderBBS(config)
        logger.info(f"Starting ThunderBBS v{__version__}")
        bbs.run()
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
