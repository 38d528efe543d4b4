"""Safe-outputs configuration loading.

The configuration is a mapping of message type to per-type handler config::

    {
      "close_issue": {"max": 2, "required_labels": ["stale"]},
      "remove_labels": {"allowed": ["bug", "triage"]}
    }

It is read from ``/opt/gh-aw/safeoutputs/config.json`` (overridable through
``GH_AW_SAFE_OUTPUTS_CONFIG_PATH``). Files ending in ``.yml``/``.yaml`` are
parsed with PyYAML. ``GH_AW_SAFE_OUTPUTS_HANDLER_CONFIG`` may carry a JSON
object whose per-type entries are merged over the file's.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from safe_outputs.core.errors import ConfigurationError
from safe_outputs.core.validation import parse_leading_int

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/opt/gh-aw/safeoutputs/config.json"
CONFIG_PATH_ENV = "GH_AW_SAFE_OUTPUTS_CONFIG_PATH"
HANDLER_CONFIG_ENV = "GH_AW_SAFE_OUTPUTS_HANDLER_CONFIG"


def normalize_type_name(name: str) -> str:
    """``close-issue`` and ``close_issue`` name the same message type."""
    return name.strip().lower().replace("-", "_")


def load_safe_outputs_config(path: str | os.PathLike[str] | None = None) -> dict[str, dict[str, Any]]:
    """Load the configuration file, returning ``{}`` when it is missing or unreadable."""
    config_path = Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        logger.warning("Config file not found at %s, using defaults", config_path)
        return {}
    try:
        text = config_path.read_text(encoding="utf-8")
        if config_path.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Failed to load config: %s", exc)
        return {}
    return _normalize(data)


def load_handler_config(
    path: str | os.PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, dict[str, Any]]:
    """File config merged with the JSON handler config from the environment.

    Raises:
        ConfigurationError: The environment variable is not valid JSON.
    """
    env = os.environ if env is None else env
    config = load_safe_outputs_config(path)
    raw = env.get(HANDLER_CONFIG_ENV, "").strip()
    if not raw:
        return config
    try:
        overrides = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{HANDLER_CONFIG_ENV} is not valid JSON: {exc}") from exc
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"{HANDLER_CONFIG_ENV} must be a JSON object")
    for name, entry in _normalize(overrides).items():
        config[name] = {**config.get(name, {}), **entry}
    return config


def parse_int_templatable(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    parsed = parse_leading_int(value)
    return default if parsed is None else parsed


def _normalize(data: Any) -> dict[str, dict[str, Any]]:
    if not isinstance(data, dict):
        return {}
    normalized: dict[str, dict[str, Any]] = {}
    for name, entry in data.items():
        if isinstance(entry, dict):
            normalized[normalize_type_name(str(name))] = dict(entry)
        elif entry is True:
            normalized[normalize_type_name(str(name))] = {}
    return normalized
