"""Configuration models and the alias store."""

from mcpcli.config.models import CliConfig, ConfigDefaults
from mcpcli.config.store import (
    ConfigError,
    config_path,
    get_aliases,
    load_config,
    load_env,
    remove_alias,
    resolve_server,
    save_config,
    set_alias,
)

__all__ = [
    "CliConfig",
    "ConfigDefaults",
    "ConfigError",
    "config_path",
    "get_aliases",
    "load_config",
    "load_env",
    "remove_alias",
    "resolve_server",
    "save_config",
    "set_alias",
]
