"""
ThunderBBS Configuration Module

Handles loading, validation, and management of configuration settings.
"""

import os
import sys
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)


@dataclass
class BBSConfig:
    """BBS general settings."""
    name: str = "ThunderBBS"
    motd: str = "Welcome to THUNDERBIRD BBS!"


@dataclass
class DatabaseConfig:
    """Database settings."""
    path: str = "bbs.sqlite"


@dataclass
class TelnetConfig:
    """Telnet transport settings."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 2323


@dataclass
class WebConfig:
    """Web JSON API settings."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 3001


@dataclass
class CryptoConfig:
    """Password hashing settings."""
    argon2_time_cost: int = 3
    argon2_memory_kb: int = 32768  # 32MB
    argon2_parallelism: int = 1


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: str = ""


@dataclass
class Config:
    """Main configuration container."""
    bbs: BBSConfig = field(default_factory=BBSConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    telnet: TelnetConfig = field(default_factory=TelnetConfig)
    web: WebConfig = field(default_factory=WebConfig)
    crypto: CryptoConfig = field(default_factory=CryptoConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.bbs.name:
            errors.append("bbs.name cannot be empty")

        if not self.database.path:
            errors.append("database.path cannot be empty")

        for section in ("telnet", "web"):
            port = getattr(self, section).port
            if not 0 < port < 65536:
                errors.append(f"{section}.port must be between 1 and 65535")

        if self.telnet.enabled and self.web.enabled and self.telnet.port == self.web.port:
            errors.append("telnet.port and web.port must differ")

        if not self.telnet.enabled and not self.web.enabled:
            errors.append("at least one of telnet or web must be enabled")

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if self.logging.level.upper() not in valid_levels:
            errors.append(f"logging.level must be one of: {valid_levels}")

        return errors

    def save(self, path: Path):
        """Save configuration to TOML file."""
        import toml  # For writing

        data = self._to_dict()

        with open(path, "w") as f:
            toml.dump(data, f)

    def _to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        from dataclasses import asdict
        return asdict(self)


# Environment variables that override transport ports
ENV_PORT_OVERRIDES = {
    "TELNET_PORT": "telnet",
    "API_PORT": "web",
}


def apply_env_overrides(config: Config, environ=None) -> Config:
    """Apply port overrides from the environment."""
    environ = os.environ if environ is None else environ

    for var, section in ENV_PORT_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        try:
            getattr(config, section).port = int(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric {var}={value!r}")

    return config


def load_config(path: Path, environ=None) -> Config:
    """Load configuration from TOML file, then apply environment overrides."""
    config = Config()

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)

        # Map TOML sections to config dataclasses
        if "bbs" in data:
            config.bbs = BBSConfig(**data["bbs"])

        if "database" in data:
            config.database = DatabaseConfig(**data["database"])

        if "telnet" in data:
            config.telnet = TelnetConfig(**data["telnet"])

        if "web" in data:
            config.web = WebConfig(**data["web"])

        if "crypto" in data:
            config.crypto = CryptoConfig(**data["crypto"])

        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

    return apply_env_overrides(config, environ)


def create_default_config(path: Path):
    """Create a default configuration file."""
    config = Config()
    config.save(path)
