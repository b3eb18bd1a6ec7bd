"""Defaults management for emoji metrics, export and upload settings"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict

from models.emoji import FormatVariant

logger = logging.getLogger("MCP_Server")

# Configuration paths
CONFIG_DIR = Path.home() / ".config" / "mcemoji"
CONFIG_FILE = CONFIG_DIR / "config.json"

HARDCODED_DEFAULTS: Dict[str, Any] = {
    "ascent": 8,
    "height": 9,
    "format_variant": FormatVariant.CURRENT.value,
    "upload_url": "https://artemis.unnamed.team/tempfiles/upload/",
    "output_dir": ".",
}

ENV_VARS = {
    "ascent": "MCEMOJI_DEFAULT_ASCENT",
    "height": "MCEMOJI_DEFAULT_HEIGHT",
    "format_variant": "MCEMOJI_FORMAT_VARIANT",
    "upload_url": "MCEMOJI_UPLOAD_URL",
    "output_dir": "MCEMOJI_OUTPUT_DIR",
}


def _coerce_metric(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Expected a non-negative integer, got {value!r}")
    metric = int(value)
    if metric < 0:
        raise ValueError(f"Expected a non-negative integer, got {metric}")
    return metric


def _coerce_variant(value: Any) -> str:
    return FormatVariant(str(value).strip().lower()).value


def _coerce_url(value: Any) -> str:
    url = str(value).strip()
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"Upload URL must start with http:// or https://, got '{url}'")
    return url


COERCERS: Dict[str, Callable[[Any], Any]] = {
    "ascent": _coerce_metric,
    "height": _coerce_metric,
    "format_variant": _coerce_variant,
    "upload_url": _coerce_url,
    "output_dir": lambda value: str(value),
}


class DefaultsManager:
    """Manages default values with precedence: per-call > runtime > config > env > hardcoded"""

    def __init__(self, config_file: Path = CONFIG_FILE):
        self.config_file = config_file
        self._runtime_defaults: Dict[str, Any] = {}
        self._config_defaults = self._load_config_defaults()

    def _load_config_defaults(self) -> Dict[str, Any]:
        """Load defaults from config file, dropping unknown keys and invalid values"""
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load config file {self.config_file}: {e}")
            return {}

        raw_defaults = config.get("defaults", {}) if isinstance(config, dict) else {}
        defaults = {}
        for key, value in raw_defaults.items():
            try:
                defaults[key] = self._coerce(key, value)
            except ValueError as e:
                logger.warning(f"Ignoring config default {key}={value!r}: {e}")
        return defaults

    def _get_env_defaults(self) -> Dict[str, Any]:
        """Load defaults from environment variables"""
        defaults = {}
        for key, env_var in ENV_VARS.items():
            value = os.getenv(env_var)
            if not value:
                continue
            try:
                defaults[key] = self._coerce(key, value)
            except ValueError as e:
                logger.warning(f"Ignoring {env_var}={value!r}: {e}")
        return defaults

    def _coerce(self, key: str, value: Any) -> Any:
        coercer = COERCERS.get(key)
        if coercer is None:
            raise ValueError(f"Unknown default '{key}'. Known defaults: {sorted(COERCERS)}")
        return coercer(value)

    def get_default(self, key: str, provided_value: Any = None) -> Any:
        """Get default value with precedence: provided > runtime > config > env > hardcoded"""
        if provided_value is not None:
            return provided_value

        if key in self._runtime_defaults:
            return self._runtime_defaults[key]

        if key in self._config_defaults:
            return self._config_defaults[key]

        env_defaults = self._get_env_defaults()
        if key in env_defaults:
            return env_defaults[key]

        return HARDCODED_DEFAULTS.get(key)

    def get_format_variant(self, provided_value: Any = None) -> FormatVariant:
        return FormatVariant(_coerce_variant(self.get_default("format_variant", provided_value)))

    def get_all_defaults(self) -> Dict[str, Any]:
        """Get all effective defaults (merged from all sources)"""
        result = dict(HARDCODED_DEFAULTS)
        result.update(self._get_env_defaults())
        result.update(self._config_defaults)
        result.update(self._runtime_defaults)
        return result

    def set_defaults(self, defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Set runtime defaults. Returns validation errors if any, leaving defaults unchanged."""
        errors = []
        coerced = {}
        for key, value in defaults.items():
            try:
                coerced[key] = self._coerce(key, value)
            except ValueError as e:
                errors.append(f"{key}: {e}")

        if errors:
            return {"errors": errors}

        self._runtime_defaults.update(coerced)
        return {"success": True, "updated": coerced}

    def persist_defaults(self, defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Persist defaults to config file"""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        config = {}
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    config = json.load(f)
            except (json.JSONDecodeError, IOError):
                config = {}

        if "defaults" not in config:
            config["defaults"] = {}
        config["defaults"].update(defaults)

        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(config, f, indent=2)
            self._config_defaults = self._load_config_defaults()
            return {"success": True, "persisted": defaults}
        except IOError as e:
            return {"error": f"Failed to write config file: {e}"}
