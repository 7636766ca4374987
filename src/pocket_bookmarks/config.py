"""Configuration loading and saving.

Config file location: ~/.config/pocket-bookmarks/config.toml

Schema:
    [auth]
    consumer_key = "..."
    access_token = "..."   # written by `pocket-bookmarks auth`
    username = "..."

    [api]
    timeout = 30.0
    page_size = 30

POCKET_CONSUMER_KEY and POCKET_ACCESS_TOKEN override the file.
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomli_w

CONFIG_DIR = Path.home() / ".config" / "pocket-bookmarks"
CONFIG_FILE = CONFIG_DIR / "config.toml"

CONSUMER_KEY_ENV = "POCKET_CONSUMER_KEY"
ACCESS_TOKEN_ENV = "POCKET_ACCESS_TOKEN"


@dataclass
class AuthConfig:
    consumer_key: str
    access_token: str | None = None
    username: str | None = None


@dataclass
class AppConfig:
    auth: AuthConfig
    timeout: float = 30.0
    page_size: int = 30


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load config from TOML file, applying environment overrides.

    The file may be missing when POCKET_CONSUMER_KEY is set.
    """
    data: dict = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    elif not os.environ.get(CONSUMER_KEY_ENV):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    auth_data = data.get("auth", {})
    api_data = data.get("api", {})

    consumer_key = os.environ.get(CONSUMER_KEY_ENV) or auth_data.get("consumer_key", "")
    access_token = os.environ.get(ACCESS_TOKEN_ENV) or auth_data.get("access_token")

    if not consumer_key:
        raise ValueError("Config missing required auth.consumer_key")

    page_size = int(api_data.get("page_size", 30))
    if page_size <= 0:
        raise ValueError("api.page_size must be positive")

    return AppConfig(
        auth=AuthConfig(
            consumer_key=consumer_key,
            access_token=access_token or None,
            username=auth_data.get("username") or None,
        ),
        timeout=float(api_data.get("timeout", 30.0)),
        page_size=page_size,
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file with restricted permissions."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    auth = {"consumer_key": config.auth.consumer_key}
    if config.auth.access_token:
        auth["access_token"] = config.auth.access_token
    if config.auth.username:
        auth["username"] = config.auth.username

    data = {
        "auth": auth,
        "api": {
            "timeout": config.timeout,
            "page_size": config.page_size,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    # Restrict permissions: file contains the access token
    os.chmod(config_path, 0o600)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
