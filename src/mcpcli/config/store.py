"""Load, validate, and persist the mcp-cli config file."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from mcpcli.config.models import CliConfig, validate_alias

CONFIG_DIR_ENV = "MCP_CLI_CONFIG_DIR"
DEFAULT_CONFIG_DIR = Path.home() / ".mcp-cli"
CONFIG_FILE_NAME = "config.yaml"


class ConfigError(Exception):
    """User-facing configuration error."""


def config_dir() -> Path:
    """Directory holding config.yaml (and an optional .env)."""
    override = os.environ.get(CONFIG_DIR_ENV)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_DIR


def config_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def load_config(path: Path | None = None) -> CliConfig:
    """Load and validate the config file.

    A missing file yields the default (empty) config.

    Raises:
        ConfigError: On unreadable file, bad YAML, or validation failure.
    """
    config_file = path or config_path()
    if not config_file.is_file():
        return CliConfig()
    return _parse(config_file)


def save_config(config: CliConfig, path: Path | None = None) -> Path:
    """Write *config* as YAML, creating the directory if needed."""
    config_file = path or config_path()
    data = config.model_dump(exclude_none=True)
    if not data.get("defaults"):
        data.pop("defaults", None)
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(
            yaml.safe_dump(data, sort_keys=True, allow_unicode=True), encoding="utf-8"
        )
    except OSError as exc:
        msg = f"Cannot write config file: {exc}"
        raise ConfigError(msg) from exc
    return config_file


def load_env(directory: Path | None = None) -> bool:
    """Load ``.env`` from the config directory so spawned servers inherit it."""
    env_path = (directory or config_dir()) / ".env"
    if env_path.is_file():
        return load_dotenv(env_path)
    return False


# ------------------------------------------------------------------ #
# Aliases
# ------------------------------------------------------------------ #


def resolve_server(server: str, config: CliConfig | None = None) -> str:
    """Return the aliased command for *server*, or *server* unchanged."""
    config = config if config is not None else load_config()
    alias = config.find_alias(server)
    return config.servers[alias] if alias is not None else server


def get_aliases() -> dict[str, str]:
    return dict(load_config().servers)


def set_alias(alias: str, command: str) -> bool:
    """Create or update *alias*.  Returns True if it already existed."""
    try:
        validate_alias(alias, command)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    config = load_config()
    existing = config.find_alias(alias)
    if existing is not None:
        del config.servers[existing]
    config.servers[alias] = command
    save_config(config)
    return existing is not None


def remove_alias(alias: str) -> bool:
    """Delete *alias*.  Returns False if it was not configured."""
    config = load_config()
    existing = config.find_alias(alias)
    if existing is None:
        return False
    del config.servers[existing]
    save_config(config)
    return True


# ------------------------------------------------------------------ #
# Parsing helpers
# ------------------------------------------------------------------ #


def _parse(path: Path) -> CliConfig:
    """Read *path* and validate it; every failure names the file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Cannot read {path}: {exc.strerror or exc}"
        raise ConfigError(msg) from exc
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        msg = f"Invalid YAML in {path}{where}"
        raise ConfigError(msg) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        kind = type(data).__name__
        msg = f"{path}: expected a mapping at the top level, got {kind}"
        raise ConfigError(msg)

    try:
        return CliConfig.model_validate(data)
    except ValidationError as exc:
        problems = "\n".join(
            f"  {'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        msg = f"Invalid settings in {path}:\n{problems}"
        raise ConfigError(msg) from exc
