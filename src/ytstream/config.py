"""Configuration file handling for ytstream."""

from pathlib import Path
from typing import Any

import yaml


# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "quality": None,
    "proxy": [],
    "timeout": 60,
}

# Default config file content
DEFAULT_CONFIG_YAML = """\
# ytstream configuration
# Location: ~/.ytstream.yml
#
# Settings can be removed or commented out to use built-in defaults.
# Built-in defaults are noted in [brackets] for each setting.

# Audio quality index, 0 = lowest. Out-of-range values snap to the
# nearest available rendition.
# quality: 0           # [none - highest available]

# Proxies for metadata requests (only the first is used by yt-dlp)
proxy: []              # [[]]

# Seconds to wait for yt-dlp metadata extraction
timeout: 60            # [60]
"""


def get_config_path() -> Path:
    """Return the default config file path (~/.ytstream.yml)."""
    return Path.home() / ".ytstream.yml"


def init_config(path: Path | None = None) -> Path:
    """Initialize default config file. Returns the path to the created file."""
    config_path = path or get_config_path()
    if config_path.exists():
        raise FileExistsError(f"Config file already exists: {config_path}")
    config_path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    return config_path


def load_config(path: Path | None = None) -> tuple[dict[str, Any], bool]:
    """Load configuration from file, auto-creating if missing.

    Args:
        path: Optional path to config file. Uses ~/.ytstream.yml if not specified.

    Returns:
        Tuple of (config dict, was_created flag). was_created is True if
        config file was auto-created on this call.
    """
    config_path = path or get_config_path()
    was_created = False

    config = DEFAULT_CONFIG.copy()

    if not config_path.exists():
        config_path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
        was_created = True

    try:
        with open(config_path, encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {config_path}: {e}") from e

    if not isinstance(file_config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    config = _merge_dicts(config, file_config)

    # A single proxy string is accepted for convenience
    if isinstance(config.get("proxy"), str):
        config["proxy"] = [config["proxy"]]
    elif config.get("proxy") is None:
        config["proxy"] = []

    return config, was_created


def merge_config(
    file_config: dict[str, Any], cli_overrides: dict[str, Any]
) -> dict[str, Any]:
    """Merge CLI overrides into file configuration.

    CLI overrides take precedence over file config. Overrides that are None
    (options not given on the command line) are ignored.
    """
    overrides = {k: v for k, v in cli_overrides.items() if v is not None}
    return _merge_dicts(file_config, overrides)


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries. Override values take precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
