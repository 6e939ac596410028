"""Configuration loading and validation for the memory plugin.

Settings come from the dict the host passes to initialize(), an optional
JSON file, and CLAWMEMORY_* environment variables, in that order of
precedence.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

API_BASE = "https://www.clawmemory.dev/api"
API_KEY_PREFIX = "cm_"

DEFAULT_RECALL_LIMIT = 5
DEFAULT_RECALL_THRESHOLD = 0.3

CONFIG_PATH_ENV = "CLAWMEMORY_CONFIG_PATH"

# Config key -> environment variable consulted when the key is absent.
ENV_FALLBACKS = {
    "apiKey": "CLAWMEMORY_API_KEY",
    "agentId": "CLAWMEMORY_AGENT_ID",
    "baseUrl": "CLAWMEMORY_BASE_URL",
    "recallThreshold": "CLAWMEMORY_RECALL_THRESHOLD",
}

# snake_case aliases accepted alongside the camelCase keys.
_ALIASES = {
    "api_key": "apiKey",
    "agent_id": "agentId",
    "auto_recall": "autoRecall",
    "auto_capture": "autoCapture",
    "recall_limit": "recallLimit",
    "recall_threshold": "recallThreshold",
    "base_url": "baseUrl",
}

_FALSE_STRINGS = ("false", "0", "no", "off")

API_KEY_ERROR = f"'apiKey' must be a string starting with '{API_KEY_PREFIX}'"


@dataclass(frozen=True)
class MemoryConfig:
    """Validated, immutable plugin settings."""

    api_key: str
    agent_id: Optional[str] = None
    auto_recall: bool = True
    auto_capture: bool = True
    recall_limit: int = DEFAULT_RECALL_LIMIT
    recall_threshold: float = DEFAULT_RECALL_THRESHOLD
    base_url: str = API_BASE
    timeout: Optional[float] = None


class ConfigurationError(Exception):
    """Raised when the plugin configuration is unusable."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {'; '.join(errors)}")

    @property
    def api_key_invalid(self) -> bool:
        return API_KEY_ERROR in self.errors


def is_valid_api_key(api_key: Any) -> bool:
    """Check that a key is a non-empty string with the expected prefix."""
    return isinstance(api_key, str) and api_key.startswith(API_KEY_PREFIX)


def _normalize_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(key, key): value for key, value in raw.items()}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _load_file(path: str) -> Dict[str, Any]:
    config_file = Path(path)
    if not config_file.exists():
        raise ConfigurationError([f"Config file not found: {path}"])
    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError([f"Invalid JSON in {path}: {e}"])
    if not isinstance(data, dict):
        raise ConfigurationError([f"Config file {path} must contain a JSON object"])
    return _normalize_keys(data)


def load_config(
    config: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MemoryConfig:
    """Build a MemoryConfig from host config, file and environment.

    Args:
        config: Dict passed by the host. May contain 'config_path' pointing
            at a JSON file with the same keys.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Validated MemoryConfig.

    Raises:
        ConfigurationError: If the API key is missing or malformed, or a
            numeric option is out of range.
    """
    environ = os.environ if environ is None else environ
    explicit = _normalize_keys(config or {})

    merged: Dict[str, Any] = {}
    for key, env_var in ENV_FALLBACKS.items():
        if environ.get(env_var):
            merged[key] = environ[env_var]

    config_path = explicit.pop("config_path", None) or environ.get(CONFIG_PATH_ENV)
    if config_path:
        merged.update(_load_file(config_path))

    merged.update({key: value for key, value in explicit.items() if value is not None})

    errors: List[str] = []

    api_key = merged.get("apiKey")
    if not is_valid_api_key(api_key):
        errors.append(API_KEY_ERROR)

    recall_limit = DEFAULT_RECALL_LIMIT
    if merged.get("recallLimit") is not None:
        try:
            recall_limit = int(merged["recallLimit"])
            if recall_limit < 1:
                errors.append("'recallLimit' must be at least 1")
        except (TypeError, ValueError):
            errors.append(f"'recallLimit' must be an integer, got {merged['recallLimit']!r}")

    recall_threshold = DEFAULT_RECALL_THRESHOLD
    if merged.get("recallThreshold") is not None:
        try:
            recall_threshold = float(merged["recallThreshold"])
            if not 0 <= recall_threshold <= 1:
                errors.append("'recallThreshold' must be between 0 and 1")
        except (TypeError, ValueError):
            errors.append(f"'recallThreshold' must be a number, got {merged['recallThreshold']!r}")

    timeout = merged.get("timeout")
    if timeout is not None:
        try:
            timeout = float(timeout)
            if timeout <= 0:
                errors.append("'timeout' must be a positive number")
        except (TypeError, ValueError):
            errors.append(f"'timeout' must be a number, got {timeout!r}")

    if errors:
        raise ConfigurationError(errors)

    return MemoryConfig(
        api_key=api_key,
        agent_id=merged.get("agentId") or None,
        auto_recall=_parse_bool(merged.get("autoRecall", True)),
        auto_capture=_parse_bool(merged.get("autoCapture", True)),
        recall_limit=recall_limit,
        recall_threshold=recall_threshold,
        base_url=str(merged.get("baseUrl") or API_BASE).rstrip("/"),
        timeout=timeout,
    )
