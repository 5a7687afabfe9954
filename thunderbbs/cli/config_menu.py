"""
ThunderBBS Configuration Commands

Non-interactive config file management for the `config` subcommand.
"""

import logging
from pathlib import Path

import toml

logger = logging.getLogger(__name__)


def run_config(args) -> int:
    """
    Run configuration command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    from ..config import load_config, create_default_config

    config_path = getattr(args, 'config', Path('config.toml'))

    if getattr(args, 'init', False):
        if config_path.exists() and not getattr(args, 'force', False):
            print(f"{config_path} already exists (use --force to overwrite).")
            return 1
        create_default_config(config_path)
        print(f"Wrote default configuration to {config_path}")
        return 0

    if getattr(args, 'show', False):
        config = load_config(config_path)
        print(config_to_toml(config))
        return 0

    if getattr(args, 'validate', False):
        config = load_config(config_path)
        errors = config.validate()
        if errors:
            print("Configuration errors:")
            for err in errors:
                print(f"  - {err}")
            return 1
        print("Configuration is valid.")
        return 0

    if getattr(args, 'set', None):
        key, value = args.set
        return set_config_value(config_path, key, value)

    print("Nothing to do. Use --show, --validate, --init or --set KEY VALUE.")
    return 1


def config_to_toml(config) -> str:
    """Convert config to TOML string representation."""
    return f"# {config.bbs.name} Configuration\n\n" + toml.dumps(config._to_dict())


def set_config_value(config_path: Path, key: str, value: str) -> int:
    """Set a specific configuration value."""
    from ..config import load_config

    config = load_config(config_path, environ={})

    # Parse dotted key (e.g., "telnet.port")
    parts = key.split(".")
    obj = config

    for part in parts[:-1]:
        if hasattr(obj, part):
            obj = getattr(obj, part)
        else:
            print(f"Invalid config key: {key}")
            return 1

    final_key = parts[-1]
    if len(parts) < 2 or not hasattr(obj, final_key):
        print(f"Invalid config key: {key}")
        return 1

    # Convert value to appropriate type
    current = getattr(obj, final_key)
    try:
        if isinstance(current, bool):
            value = value.lower() in ('true', '1', 'yes')
        elif isinstance(current, int):
            value = int(value)
    except ValueError:
        print(f"Invalid value for {key}: {value!r}")
        return 1

    setattr(obj, final_key, value)

    errors = config.validate()
    if errors:
        print("Not saved, configuration would be invalid:")
        for err in errors:
            print(f"  - {err}")
        return 1

    config.save(config_path)
    logger.info(f"Config {key} updated in {config_path}")

    print(f"Set {key} = {value}")
    return 0
