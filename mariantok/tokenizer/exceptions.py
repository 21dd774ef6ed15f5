# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the tokenization pipeline.

Construction-time errors (VocabLoadError, IntegrityError, plus ConfigError
from the config package) abort opening a tokenizer entirely. Everything else
is raised per call and leaves the tokenizer usable: a failed encode() never
changes what the next encode() returns.

The status codes mirror the ones the native segmentation wrappers return,
so a SegmentationError always tells you which kind of failure happened.
"""

from mariantok.config.exceptions import ConfigError

STATUS_INVALID_ARGUMENT = -1
STATUS_ENGINE_FAILURE = -2
STATUS_BUFFER_TOO_SMALL = -3


class TokenizerError(Exception):
    """Base for all tokenizer errors."""


class VocabLoadError(TokenizerError):
    """Raised when vocab.json is missing, isn't valid JSON, or isn't a piece -> id table."""


class IntegrityError(TokenizerError):
    """Raised when a model artifact doesn't match the hash recorded in checksum.txt."""


class SegmentationError(TokenizerError):
    """Raised when the underlying segmentation engine reports a failure."""

    def __init__(self, message: str, status: int = STATUS_ENGINE_FAILURE) -> None:
        super().__init__(f"{message} (status={status})")
        self.status = status


class ResourceExhausted(TokenizerError):
    """
    Raised when output would exceed a deliberately chosen hard bound.

    We never silently truncate — a cut-off translation looks plausible and
    nobody notices until much later.
    """

    def __init__(self, message: str, required: int, limit: int) -> None:
        super().__init__(message)
        self.required = required
        self.limit = limit
        self.status = STATUS_BUFFER_TOO_SMALL


class DecodeBufferOverflow(ResourceExhausted):
    """Raised when decoded text is larger than the configured max_decode_bytes."""


class InvalidConfig(TokenizerError):
    """Raised when the config leaves no room for tokens, e.g. model_max_length=1 with EOS."""


class Closed(TokenizerError):
    """Raised when a tokenizer (or its segmenter) is used after close()."""


__all__ = [
    "STATUS_BUFFER_TOO_SMALL",
    "STATUS_ENGINE_FAILURE",
    "STATUS_INVALID_ARGUMENT",
    "Closed",
    "ConfigError",
    "DecodeBufferOverflow",
    "IntegrityError",
    "InvalidConfig",
    "ResourceExhausted",
    "SegmentationError",
    "TokenizerError",
    "VocabLoadError",
]
