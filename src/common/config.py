"""Runtime configuration loading for resolver tunables.

Values are layered with the following precedence (highest first):
  1. Environment variables (REQNAME_MAX_CONCURRENCY, REQNAME_LOG_LEVEL)
  2. YAML config file (explicit path, REQNAME_CONFIG, or default locations)
  3. Built-in defaults on ``Constants``

Configuration problems are logged and ignored; loading never raises.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from common.logging_utils import configure_logging
from constants import Constants

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _candidate_paths(path: Optional[str]):
    if path:
        return [path]
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        return [env_path]
    return [os.path.expanduser(p) for p in Constants.CONFIG_LOCATIONS]


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first readable YAML config file.

    Args:
        path: Explicit config path. When omitted, REQNAME_CONFIG and then the
            default locations in ``Constants.CONFIG_LOCATIONS`` are tried.

    Returns:
        Parsed mapping, or an empty dict when nothing usable was found.
    """
    for candidate in _candidate_paths(path):
        if not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: top level must be a mapping", candidate)
            return {}
        logger.debug("Loaded configuration from %s", candidate)
        return data
    return {}


def _coerce_concurrency(value: Any, origin: str) -> Optional[int]:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid max_concurrency %r from %s; keeping %s",
                       value, origin, Constants.MAX_CONCURRENCY)
        return None
    if parsed < 1:
        logger.warning("max_concurrency from %s must be >= 1, got %s", origin, parsed)
        return None
    return parsed


def _coerce_level(value: Any, origin: str) -> Optional[str]:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        logger.warning("Invalid log level %r from %s; keeping %s",
                       value, origin, Constants.LOG_LEVEL)
        return None
    return level


def apply_config(cfg: Optional[Dict[str, Any]] = None) -> None:
    """Apply file config, then environment overrides, onto ``Constants``.

    Recognised keys::

        resolver:
          max_concurrency: 50
        logging:
          level: INFO
    """
    cfg = cfg or {}

    resolver_cfg = cfg.get("resolver")
    if isinstance(resolver_cfg, dict) and "max_concurrency" in resolver_cfg:
        value = _coerce_concurrency(resolver_cfg["max_concurrency"], "config file")
        if value is not None:
            Constants.MAX_CONCURRENCY = value

    logging_cfg = cfg.get("logging")
    if isinstance(logging_cfg, dict) and "level" in logging_cfg:
        level = _coerce_level(logging_cfg["level"], "config file")
        if level is not None:
            Constants.LOG_LEVEL = level

    env_concurrency = os.environ.get(Constants.ENV_MAX_CONCURRENCY)
    if env_concurrency:
        value = _coerce_concurrency(env_concurrency, Constants.ENV_MAX_CONCURRENCY)
        if value is not None:
            Constants.MAX_CONCURRENCY = value

    env_level = os.environ.get(Constants.ENV_LOG_LEVEL)
    if env_level:
        level = _coerce_level(env_level, Constants.ENV_LOG_LEVEL)
        if level is not None:
            Constants.LOG_LEVEL = level


def configure(path: Optional[str] = None) -> Dict[str, Any]:
    """Load config, apply it to ``Constants`` and set up logging.

    Returns:
        The raw mapping that was loaded (possibly empty).
    """
    cfg = load_config(path)
    apply_config(cfg)
    configure_logging(Constants.LOG_LEVEL)
    return cfg
