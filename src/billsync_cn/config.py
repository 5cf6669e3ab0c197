"""Configuration management for billsync-cn."""

import json
import os
from pathlib import Path
from typing import Any

# Default config filename
CONFIG_FILENAME = "config.json"

DEFAULT_ENCODING = "utf-8"
ALIPAY_ENCODING = "gbk"
DEFAULT_CATEGORY_LIMIT = 50
DEFAULT_ALIPAY_FILENAME_HINTS = ["支付宝"]


def get_config_dir() -> Path:
    """Get the config directory path (XDG compliant)."""
    xdg_config_home = os.getenv("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config_home) / "billsync-cn"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_config_dir() / CONFIG_FILENAME


def find_config_file() -> Path | None:
    """Find the config file in standard locations.

    Searches for config in the following order:
    1. config.json in current directory
    2. XDG config: ~/.config/billsync-cn/config.json
    """
    config_paths = [
        Path(CONFIG_FILENAME),
        get_config_path(),
    ]

    for path in config_paths:
        if path.exists():
            return path

    return None


def load_json_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(config_path, encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def save_json_config(config: dict[str, Any], config_path: Path | None = None) -> Path:
    """Save configuration to a JSON file.

    Args:
        config: Configuration dictionary to save
        config_path: Path to save to (defaults to XDG config location)

    Returns:
        Path where config was saved
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)
        f.write("\n")

    return config_path


def load_config(config_path: Path | None = None) -> dict[str, Any] | None:
    """Load configuration from config file.

    Args:
        config_path: Explicit path to config.json file

    Returns:
        Loaded config dict or None if not found
    """
    if config_path:
        return load_json_config(config_path)

    config_file = find_config_file()
    if config_file:
        return load_json_config(config_file)

    return None


def config_exists() -> bool:
    """Check if any config file exists."""
    return find_config_file() is not None


def get_encodings(config: dict[str, Any] | None = None) -> tuple[str, str]:
    """Get the text encodings tried for delimited exports.

    Args:
        config: Loaded JSON config

    Returns:
        (default encoding, encoding for files that look like Alipay exports)
    """
    encodings = (config or {}).get("encodings", {})
    return (
        encodings.get("default", DEFAULT_ENCODING),
        encodings.get("alipay", ALIPAY_ENCODING),
    )


def get_category_limit(config: dict[str, Any] | None = None) -> int:
    """Get how many category slices are kept before folding into "Other"."""
    if config and (limit := config.get("category_limit")) is not None:
        return int(limit)
    return DEFAULT_CATEGORY_LIMIT


def get_alipay_filename_hints(config: dict[str, Any] | None = None) -> list[str]:
    """Get file name substrings that mark an Alipay export."""
    if config and (hints := config.get("alipay_filename_hints")):
        return list(hints)
    return DEFAULT_ALIPAY_FILENAME_HINTS.copy()


def create_default_config() -> dict[str, Any]:
    """Create a default configuration."""
    return {
        "encodings": {
            "default": DEFAULT_ENCODING,
            "alipay": ALIPAY_ENCODING,
        },
        "category_limit": DEFAULT_CATEGORY_LIMIT,
        "alipay_filename_hints": DEFAULT_ALIPAY_FILENAME_HINTS.copy(),
    }
