# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Custom exceptions for the configuration system.

We keep these separate so that the loader and the tokenizer facade can catch
config-specific failures without importing the entire config machinery.
Every one of these is fatal to tokenizer construction.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a config file cannot be read from disk or parsed as JSON/YAML."""


class ConfigValidationError(ConfigError):
    """
    Raised when a config file parses fine but doesn't fit the expected shape.
    This covers type mismatches (a string where an id should be), a top level
    that isn't a mapping, unknown settings keys, and out-of-range values.
    """
