"""
Tests for ThunderBBS Configuration and CLI
"""

import argparse
import sys
from pathlib import Path

from thunderbbs.__main__ import build_parser
from thunderbbs.cli.config_menu import run_config, set_config_value
from thunderbbs.cli.users import run_user
from thunderbbs.config import Config, load_config, create_default_config
from thunderbbs.db.connection import Database
from thunderbbs.db.models import Role
from thunderbbs.db.users import UserRepository

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


class TestConfig:
    """Tests for loading and validating configuration."""

    def test_defaults(self):
        config = Config()
        assert config.telnet.port == 2323
        assert config.web.port == 3001
        assert config.database.path == "bbs.sqlite"
        assert config.validate() == []

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.toml", environ={})
        assert config.bbs.name == "ThunderBBS"

    def test_load_sections(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            '[bbs]\nname = "Night Owl"\n\n'
            '[telnet]\nport = 2424\n\n'
            '[database]\npath = "data/owl.sqlite"\n'
        )

        config = load_config(path, environ={})
        assert config.bbs.name == "Night Owl"
        assert config.telnet.port == 2424
        assert config.telnet.enabled is True
        assert config.database.path == "data/owl.sqlite"
        assert config.web.port == 3001

    def test_env_overrides(self, tmp_path):
        config = load_config(tmp_path / "absent.toml", environ={"TELNET_PORT": "4000", "API_PORT": "4001"})
        assert config.telnet.port == 4000
        assert config.web.port == 4001

    def test_bad_env_override_ignored(self, tmp_path):
        config = load_config(tmp_path / "absent.toml", environ={"TELNET_PORT": "telnet"})
        assert config.telnet.port == 2323

    def test_validate_errors(self):
        config = Config()
        config.web.port = config.telnet.port
        config.logging.level = "LOUD"
        errors = config.validate()
        assert "telnet.port and web.port must differ" in errors
        assert any(e.startswith("logging.level") for e in errors)

    def test_validate_needs_a_transport(self):
        config = Config()
        config.telnet.enabled = False
        config.web.enabled = False
        assert "at least one of telnet or web must be enabled" in config.validate()

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "config.toml"
        create_default_config(path)

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert data["telnet"]["port"] == 2323
        assert load_config(path, environ={}) == Config()


class TestConfigCommand:
    """Tests for the config subcommand."""

    def _args(self, path: Path, **kwargs) -> argparse.Namespace:
        defaults = dict(config=path, init=False, force=False, show=False, validate=False, set=None)
        defaults.update(kwargs)
        return argparse.Namespace(**defaults)

    def test_init_refuses_overwrite(self, tmp_path):
        path = tmp_path / "config.toml"
        assert run_config(self._args(path, init=True)) == 0
        assert run_config(self._args(path, init=True)) == 1
        assert run_config(self._args(path, init=True, force=True)) == 0

    def test_set_value(self, tmp_path):
        path = tmp_path / "config.toml"
        assert set_config_value(path, "telnet.port", "2525") == 0
        assert load_config(path, environ={}).telnet.port == 2525

    def test_set_bool(self, tmp_path):
        path = tmp_path / "config.toml"
        assert set_config_value(path, "web.enabled", "no") == 0
        assert load_config(path, environ={}).web.enabled is False

    def test_set_invalid_key(self, tmp_path):
        path = tmp_path / "config.toml"
        assert set_config_value(path, "telnet.colour", "x") == 1
        assert set_config_value(path, "telnet", "x") == 1
        assert not path.exists()

    def test_set_rejects_invalid_config(self, tmp_path):
        path = tmp_path / "config.toml"
        assert set_config_value(path, "web.port", "2323") == 1

    def test_validate_command(self, tmp_path, capsys):
        assert run_config(self._args(tmp_path / "none.toml", validate=True)) == 0
        assert "Configuration is valid." in capsys.readouterr().out


class TestUserCommand:
    """Tests for the user subcommand."""

    def setup_method(self):
        self.parser = build_parser()

    def _seed_user(self, db_path: str, username: str):
        db = Database(db_path)
        db.initialize()
        UserRepository(db).create_user(username, "hash")
        db.close()

    def _role(self, db_path: str, username: str) -> Role:
        db = Database(db_path)
        db.initialize()
        try:
            return UserRepository(db).get_user_by_username(username).role
        finally:
            db.close()

    def test_promote_and_demote(self, tmp_path):
        db_path = str(tmp_path / "bbs.sqlite")
        config_path = tmp_path / "config.toml"
        config_path.write_text(f'[database]\npath = "{db_path}"\n')
        self._seed_user(db_path, "alice")

        args = self.parser.parse_args(["--config", str(config_path), "user", "--promote", "alice"])
        assert run_user(args) == 0
        assert self._role(db_path, "alice") == Role.SYSOP

        args = self.parser.parse_args(["--config", str(config_path), "user", "--demote", "alice"])
        assert run_user(args) == 0
        assert self._role(db_path, "alice") == Role.USER

    def test_promote_unknown(self, tmp_path):
        config_path = tmp_path / "config.toml"
        config_path.write_text(f'[database]\npath = "{tmp_path / "bbs.sqlite"}"\n')

        args = self.parser.parse_args(["--config", str(config_path), "user", "--promote", "ghost"])
        assert run_user(args) == 1

    def test_list(self, tmp_path, capsys):
        db_path = str(tmp_path / "bbs.sqlite")
        config_path = tmp_path / "config.toml"
        config_path.write_text(f'[database]\npath = "{db_path}"\n')
        self._seed_user(db_path, "alice")

        args = self.parser.parse_args(["--config", str(config_path), "user", "--list"])
        assert run_user(args) == 0
        out = capsys.readouterr().out
        assert "alice" in out
        assert "user" in out
