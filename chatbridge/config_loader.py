"""Configuration loading from YAML files with `${VAR}` placeholder expansion.

The config file is found from an explicit path, then CHATBRIDGE_CONFIG, then
configs/config_default.yaml. Relative paths are taken from the working
directory. Placeholders are filled from a `.env` file next to the config,
falling back to the process environment.
"""

import logging
import os
import re
from collections import ChainMap
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .core.backend import Backend
from .core.exceptions import ConfigurationError

logger = logging.getLogger("chatbridge")

DEFAULT_CONFIG_PATH = Path("configs") / "config_default.yaml"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def load_config(path: Optional[str] = None) -> dict[str, Any]:
    """Read the YAML config and expand its placeholders.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML or does
            not hold a mapping.
    """
    config_path = Path(path or os.getenv("CHATBRIDGE_CONFIG") or DEFAULT_CONFIG_PATH).expanduser()
    if not config_path.is_file():
        raise ConfigurationError(f"Config file not found: {config_path.resolve()}")

    logger.info(f"Loading configuration from {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    env_file = config_path.with_name(".env")
    dotenv = {}
    if env_file.is_file():
        dotenv = {k: v for k, v in dotenv_values(env_file).items() if v is not None}
    return expand_placeholders(data, ChainMap(dotenv, os.environ))


def expand_placeholders(value: Any, lookup: Mapping[str, str]) -> Any:
    """Replace `${VAR}` and `$VAR` in every string of a parsed config.

    Unknown names stay as written, with a warning.
    """
    if isinstance(value, dict):
        return {key: expand_placeholders(item, lookup) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_placeholders(item, lookup) for item in value]
    if not isinstance(value, str):
        return value

    def fill(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        if name in lookup:
            return lookup[name]
        logger.warning(f"Config placeholder {match.group(0)} has no value; leaving it as is")
        return match.group(0)

    return _PLACEHOLDER.sub(fill, value)


def parse_backend(config: Mapping[str, Any]) -> Backend:
    """Build the backend definition from the `backend` config section.

    Raises:
        ConfigurationError: If `backend.api_base` is missing.
    """
    backend_cfg = config.get("backend") or {}
    if not isinstance(backend_cfg, Mapping):
        raise ConfigurationError("'backend' must be a mapping")

    api_base = backend_cfg.get("api_base")
    if not isinstance(api_base, str) or not api_base.strip():
        raise ConfigurationError("backend.api_base is required")

    timeout_raw = backend_cfg.get("timeout")
    try:
        timeout: Optional[float] = float(timeout_raw) if timeout_raw is not None else None
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"backend.timeout must be a number, got {timeout_raw!r}") from exc

    target_model = backend_cfg.get("model")

    return Backend(
        name=str(backend_cfg.get("name") or "backend"),
        base_url=api_base.strip(),
        api_key=str(backend_cfg.get("api_key") or ""),
        timeout=timeout,
        target_model=str(target_model) if target_model else None,
    )


def resolve_server_address(config: Mapping[str, Any]) -> tuple[str, int]:
    """Host and port to bind; CHATBRIDGE_HOST / CHATBRIDGE_PORT take priority."""
    server_cfg = config.get("server") or {}

    host = os.getenv("CHATBRIDGE_HOST")
    if host is None:
        host = str(server_cfg.get("host", DEFAULT_HOST))

    port_raw = os.getenv("CHATBRIDGE_PORT")
    if port_raw is None:
        port_raw = server_cfg.get("port", DEFAULT_PORT)
    try:
        port = int(port_raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {port_raw!r}, falling back to {DEFAULT_PORT}")
        port = DEFAULT_PORT

    return host, port


def resolve_log_level(config: Mapping[str, Any]) -> str:
    logging_cfg = config.get("logging") or {}
    return str(logging_cfg.get("level") or "INFO").upper()
