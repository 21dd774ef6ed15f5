# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader — reads config.json / tokenizer.yaml from disk and produces
validated, frozen config objects.

The loading pipeline is deliberately simple and linear:
  1. Read raw text from the file
  2. Parse it (JSON for the model config, YAML for runtime settings)
  3. Hand the dict to pydantic for validation
  4. Normalize (model config only) and return the frozen object

If anything goes wrong at any step, we fail immediately with a clear error.
There is no retry logic and no fallback. A tokenizer built from a broken
config would produce ids the model was never trained on, which is much
worse than refusing to start.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mariantok.config.exceptions import ConfigLoadError, ConfigValidationError
from mariantok.config.schema import MarianConfig, TokenizerSettings, normalize_config


def _read_text(config_path: Path) -> str:
    """Read a config file, turning every I/O problem into ConfigLoadError."""
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        return config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err


def _parse_json_object(raw_text: str, source: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as err:
        raise ConfigLoadError(f"Invalid JSON in {source}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigValidationError(
            f"Model config in {source} must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def read_raw_model_config(config_path: Path) -> dict[str, Any]:
    """
    Read config.json into a plain dict without validating or normalizing it.

    The fused backend needs this: values it reads from its own model file
    get layered on top of the raw dict before normalization runs.
    """
    return _parse_json_object(_read_text(config_path), str(config_path))


def parse_model_config(raw_text: str, source: str = "<memory>") -> MarianConfig:
    """
    Parse config.json contents and normalize the result.

    Args:
        raw_text: The JSON document.
        source: Where the text came from, for error messages.

    Returns:
        A normalized, frozen MarianConfig.

    Raises:
        ConfigLoadError: The text isn't valid JSON.
        ConfigValidationError: The JSON isn't an object or has the wrong types.
    """
    parsed = _parse_json_object(raw_text, source)

    try:
        config = MarianConfig.model_validate(parsed)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err

    return normalize_config(config)


def load_model_config(config_path: Path) -> MarianConfig:
    """
    Load, validate, normalize and freeze a model's config.json.

    Args:
        config_path: Path to config.json.

    Returns:
        A normalized, frozen MarianConfig.

    Raises:
        ConfigLoadError: File I/O or JSON parse failures.
        ConfigValidationError: The document doesn't fit the MarianConfig shape.
    """
    return parse_model_config(_read_text(config_path), source=str(config_path))


def _read_yaml_file(settings_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    An empty file is allowed and means "all defaults".
    """
    raw_text = _read_text(settings_path)

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {settings_path}: {err}") from err

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Settings file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_settings(settings_path: Path) -> TokenizerSettings:
    """
    Load and validate a tokenizer.yaml runtime settings file.

    Args:
        settings_path: Path to a YAML file.

    Returns:
        A frozen TokenizerSettings instance.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Unknown keys, wrong types, invalid choices.
    """
    raw_data = _read_yaml_file(settings_path)

    try:
        return TokenizerSettings.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Settings validation failed for {settings_path}:\n{err}"
        ) from err
