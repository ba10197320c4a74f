"""Configuration constants, environment loading, and upload directory setup.

WHY: The bot needs two Slack tokens, an upload directory, and a couple of
network timeouts. Keeping them in one place makes the knobs easy to find
and lets tests build settings without touching the real environment.

HOW: python-dotenv loads the .env file on import. load_settings() reads
the environment into a frozen Settings dataclass and raises ConfigError
with a readable message when something required is missing or malformed.

RULES:
- SLACK_BOT_TOKEN and SLACK_APP_TOKEN are required, never defaulted
- UPLOAD_DIR defaults to ./uploads
- Timeouts are positive numbers of seconds
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

# Load .env from the directory the bot is started from
load_dotenv()

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_UPLOAD_DIR = "./uploads"
DEFAULT_DOWNLOAD_TIMEOUT_S = 60.0
DEFAULT_SLACK_API_TIMEOUT_S = 30
DEFAULT_LOG_LEVEL = "INFO"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class ConfigError(ValueError):
    """Raised when the environment does not describe a runnable bot."""


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration.

    RULES:
    - bot_token: xoxb- token used for Web API calls and file downloads
    - app_token: xapp- token used to open the Socket Mode connection
    - upload_dir: root directory for every downloaded file
    """

    bot_token: str
    app_token: str
    upload_dir: Path
    download_timeout_s: float = DEFAULT_DOWNLOAD_TIMEOUT_S
    slack_api_timeout_s: int = DEFAULT_SLACK_API_TIMEOUT_S
    log_level: str = DEFAULT_LOG_LEVEL
    debug: bool = False


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError("{} is required".format(name))
    return value


def _positive_number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError("{} must be a number, got {!r}".format(name, raw)) from None
    if value <= 0:
        raise ConfigError("{} must be positive, got {!r}".format(name, raw))
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read Settings from the environment.

    WHY: Misconfiguration is the only fatal condition for the bot, so it
    is checked once at startup with a clear message instead of failing on
    the first Slack call.

    RULES:
    - env defaults to os.environ (already populated by python-dotenv)
    - Raises ConfigError for missing tokens or non-positive timeouts
    - Does not create the upload directory (see ensure_upload_dir)
    """
    if env is None:
        env = os.environ

    upload_dir = env.get("UPLOAD_DIR", "").strip() or DEFAULT_UPLOAD_DIR

    return Settings(
        bot_token=_required(env, "SLACK_BOT_TOKEN"),
        app_token=_required(env, "SLACK_APP_TOKEN"),
        upload_dir=Path(upload_dir),
        download_timeout_s=_positive_number(
            env, "DOWNLOAD_TIMEOUT_S", DEFAULT_DOWNLOAD_TIMEOUT_S
        ),
        slack_api_timeout_s=max(1, int(
            _positive_number(env, "SLACK_API_TIMEOUT_S", DEFAULT_SLACK_API_TIMEOUT_S)
        )),
        log_level=(env.get("LOG_LEVEL", "").strip() or DEFAULT_LOG_LEVEL).upper(),
        debug=env.get("SLACK_DEBUG", "").strip().lower() in _TRUE_VALUES,
    )


def ensure_upload_dir(path: Path) -> Path:
    """Create the upload directory if it does not exist yet."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(
            "Failed to create upload directory {}: {}".format(path, exc)
        ) from exc
    return path
