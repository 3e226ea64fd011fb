from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - py<3.11
    import tomli as tomllib

from fetch_unroll.errors import ConfigError
from fetch_unroll.options import FetchOptions

CONFIG_ENV = "FETCH_UNROLL_CONFIG"
TRANSPORT_ENV = "FETCH_UNROLL_TRANSPORT"
TIMEOUT_ENV = "FETCH_UNROLL_TIMEOUT"

CONFIG_DIR = Path.home() / ".fetch_unroll"
CONFIG_PATH = CONFIG_DIR / "config.toml"


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH


def load_config() -> Dict[str, Any]:
    path = config_path()
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc


def _as_timeout(value: Any, source: str) -> float | None:
    if value is None:
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid timeout in {source}: {value!r}") from exc
    if timeout <= 0:
        return None
    return timeout


def load_fetch_options() -> FetchOptions:
    path = config_path()
    section = load_config().get("fetch", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[fetch] in {path} must be a table")

    defaults = FetchOptions()
    transport = section.get("transport", defaults.transport)
    timeout = _as_timeout(section.get("timeout", defaults.timeout), str(path))
    max_redirects = section.get("max_redirects", defaults.max_redirects)
    user_agent = section.get("user_agent", defaults.user_agent)

    if not isinstance(transport, str):
        raise ConfigError(f"Invalid transport in {path}: {transport!r}")
    if not isinstance(max_redirects, int) or isinstance(max_redirects, bool) or max_redirects < 0:
        raise ConfigError(f"Invalid max_redirects in {path}: {max_redirects!r}")
    if not isinstance(user_agent, str):
        raise ConfigError(f"Invalid user_agent in {path}: {user_agent!r}")

    env_transport = os.environ.get(TRANSPORT_ENV, "").strip()
    if env_transport:
        transport = env_transport
    env_timeout = os.environ.get(TIMEOUT_ENV, "").strip()
    if env_timeout:
        timeout = _as_timeout(env_timeout, TIMEOUT_ENV)

    return FetchOptions(
        transport=transport,
        timeout=timeout,
        max_redirects=max_redirects,
        user_agent=user_agent,
    )
