from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Configuration loader for the boat information enricher.

Responsibilities:
- Load the optional YAML settings file (config/boatinfo.yml by default)
- Validate it against the packaged JSON schema
- Overlay environment variables (PERPLEXITY_API_KEY, QUERY_TEMPLATE, ...)
- Apply defaults and build a single immutable AppConfig

The resulting AppConfig is built once at startup and handed to the services;
nothing below the CLI reads the environment directly.
"""

__all__ = [
    "AppConfig",
    "ConfigError",
    "DEFAULT_API_URL",
    "DEFAULT_MODEL",
    "DEFAULT_PROMPT_TEMPLATE",
    "SUBJECT_PLACEHOLDER",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"

SUBJECT_PLACEHOLDER = "{BOAT_TYPE}"
DEFAULT_PROMPT_TEMPLATE = (
    "Provide detailed information about the boat type: {BOAT_TYPE}. "
    "Include details about its typical size, use cases, features, and history."
)
DEFAULT_API_URL = "https://api.perplexity.ai/chat/completions"
DEFAULT_MODEL = "sonar"
DEFAULT_ERROR_LOG_DIR = "logs"

# Environment variable -> AppConfig field
ENV_OVERRIDES = {
    "QUERY_TEMPLATE": "prompt_template",
    "PERPLEXITY_MODEL": "model",
    "PERPLEXITY_API_URL": "api_url",
}
API_KEY_ENV = "PERPLEXITY_API_KEY"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings shared by the enrichment client and the pipeline."""
    api_key: str
    model: str = DEFAULT_MODEL
    api_url: str = DEFAULT_API_URL
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate settings file data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if the
            data fails validation (wrong types, unknown keys, empty strings).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    _validate_config_schema(data)
    return data


def load_config(path: Path | None, environ: Mapping[str, str]) -> AppConfig:
    """Build the AppConfig from an optional settings file and the environment.

    Precedence, highest first: environment variables, settings file, defaults.
    A missing settings file is not an error; the credential is mandatory.

    Args:
        path: YAML settings file, or None to skip it
        environ: Environment mapping (normally os.environ after .env loading)

    Returns:
        Frozen AppConfig

    Raises:
        ConfigError: If the API key is missing or the settings file is invalid
    """
    settings: dict[str, Any] = {}
    if path is not None and path.exists():
        settings = _read_settings_file(path)

    for env_name, field in ENV_OVERRIDES.items():
        value = environ.get(env_name, "").strip()
        if value:
            settings[field] = value

    api_key = environ.get(API_KEY_ENV, "").strip()
    if not api_key:
        raise ConfigError(
            f"Perplexity API key not found. Set {API_KEY_ENV} in the environment or a .env file"
        )

    return AppConfig(
        api_key=api_key,
        model=settings.get("model", DEFAULT_MODEL),
        api_url=settings.get("api_url", DEFAULT_API_URL),
        prompt_template=settings.get("prompt_template", DEFAULT_PROMPT_TEMPLATE),
        error_log_dir=settings.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
    )
