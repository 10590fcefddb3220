"""CLI config: reads/writes ~/.runonce/config.toml."""

from __future__ import annotations

import os
import stat
import tomllib

import tomli_w

from runonce.config import RunOnceConfig

CONFIG_DIR = os.path.expanduser("~/.runonce")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.toml")

CLI_CLOUD_NAME = "cli"


def load_config() -> dict:
    """Load the CLI config file, returning {} if it doesn't exist."""
    if not os.path.exists(CONFIG_PATH):
        return {}
    with open(CONFIG_PATH, "rb") as f:
        return tomllib.load(f)


def save_config(data: dict) -> None:
    """Write the CLI config file with restricted permissions (0600)."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, "wb") as f:
        tomli_w.dump(data, f)
    os.chmod(CONFIG_PATH, stat.S_IRUSR | stat.S_IWUSR)


def get_url() -> str:
    """VM-management URL from the config file, falling back to RUNONCE_CLOUD_URL."""
    url = load_config().get("url", "") or RunOnceConfig.from_env().cloud_url
    if not url:
        raise SystemExit("No VM-management URL. Run: runonce login --url <URL>")
    return url


def get_token() -> str:
    return load_config().get("token", "") or RunOnceConfig.from_env().cloud_token
