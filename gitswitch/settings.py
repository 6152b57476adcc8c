"""Load user settings from <config dir>/settings.yaml."""

import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR_ENV = "GIT_IDENTITY_CONFIG_DIR"

_DEFAULTS: dict[str, Any] = {
    "ssh": {
        "dir": "~/.ssh",
        "config_file": "~/.ssh/config",
        "key_bits": 4096,
        "connect_timeout": 10,
    },
    "identities": {
        # Relative paths resolve against the config dir
        "file": "identities.yaml",
    },
    # Per-provider overrides, e.g. {"gitlab": {"host": "gitlab.example.com"}}
    "providers": {},
    "logging": {
        "file": "logs/app.log",
        "level": "INFO",
        "log_to_console": False,
        "max_bytes": 10485760,  # 10 MB
        "backup_count": 3,
    },
}

_cached: dict[str, Any] | None = None


def get_config_dir() -> Path:
    """Config directory: $GIT_IDENTITY_CONFIG_DIR or ~/.config/git-identity-switcher."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "git-identity-switcher"


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base recursively. Mutates base."""
    for key, value in overlay.items():
        if value is None:
            continue
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def get_default_settings() -> dict[str, Any]:
    """Return a deep copy of the built-in defaults."""
    return _deep_copy_nested(_DEFAULTS)


def get_setting(settings: dict[str, Any], path: str, default: Any = None) -> Any:
    """Get a nested value by dot path (e.g. 'ssh.config_file')."""
    current: Any = settings
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def resolve_path(value: str | Path, config_dir: Path | None = None) -> Path:
    """Expand ~ and anchor relative paths at the config dir."""
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return (config_dir or get_config_dir()) / path


def reload_settings() -> None:
    """Clear the settings cache."""
    global _cached
    _cached = None


def load_settings(config_dir: Path | None = None) -> dict[str, Any]:
    """Load settings.yaml from the config dir. Returns merged defaults + file values.

    A missing or unparsable file yields the defaults.
    """
    global _cached
    if _cached is not None:
        return _cached

    path = (config_dir or get_config_dir()) / "settings.yaml"

    result = get_default_settings()
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                _deep_merge(result, data)
        except (yaml.YAMLError, OSError):
            pass

    _cached = result
    return result


def _deep_copy_nested(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _deep_copy_nested(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_deep_copy_nested(x) for x in obj]
    return obj
