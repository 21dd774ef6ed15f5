# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The segmenter adapter contract.

A segmenter is whatever splits raw text into subword pieces and glues
pieces back into text — SentencePiece, a HuggingFace tokenizer, something
native. We don't implement segmentation ourselves; we wrap an engine behind
this interface so the pipelines above never need to know which one is in use.

Two backend shapes exist:

  split  — the engine segments text, but its ids live in its own numbering
           space. The adapter translates engine id -> piece -> task id
           through the VocabularyTable.
  fused  — the engine's vocabulary already is the task vocabulary, so the
           ids it returns go straight to the model.

Both shapes present the same methods. encode_ids/decode_ids are what the
pipelines call; segment/decode_pieces/piece_to_id/id_to_piece expose the raw
capability for callers that want pieces.

Thread safety is a per-backend property (thread_safe). Native segmentation
handles are often not safe for concurrent calls, so the tokenizer facade
serializes calls on adapters that say they aren't.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from mariantok.tokenizer.exceptions import (
    STATUS_INVALID_ARGUMENT,
    Closed,
    DecodeBufferOverflow,
    SegmentationError,
)


class SegmenterAdapter(ABC):
    """Uniform segment / id-lookup / decode contract over a segmentation engine."""

    thread_safe: bool = False

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def unk_id(self) -> Optional[int]:
        """The task-space UNK id this backend reports, or None if it has no opinion."""
        return None

    def config_overrides(self) -> dict[str, Any]:
        """Config values read from the engine's own model file, keyed like config.json."""
        return {}

    @abstractmethod
    def segment(self, text: str) -> list[str]:
        """Split text into subword pieces, in order."""

    @abstractmethod
    def piece_to_id(self, piece: str) -> int:
        """Map a piece to its task vocabulary id (UNK if unknown)."""

    @abstractmethod
    def id_to_piece(self, token_id: int) -> str:
        """Map a task vocabulary id to its piece ("<unk>" if unknown)."""

    @abstractmethod
    def decode_pieces(self, pieces: Sequence[str], max_bytes: Optional[int] = None) -> str:
        """Detokenize pieces into natural text."""

    @abstractmethod
    def encode_ids(self, text: str, max_pieces: int) -> list[int]:
        """
        Segment text into task vocabulary ids, keeping at most max_pieces.

        Text longer than the budget is truncated, never rejected.
        """

    @abstractmethod
    def decode_ids(self, ids: Sequence[int], max_bytes: Optional[int] = None) -> str:
        """Turn task vocabulary ids back into text."""

    def close(self) -> None:
        """Release the engine. Safe to call more than once."""
        if self._closed:
            return
        self._release()
        self._closed = True

    def _release(self) -> None:
        """Drop engine references. Subclasses holding native state override this."""

    def _ensure_open(self) -> None:
        if self._closed:
            raise Closed(f"{type(self).__name__} has been closed")

    @staticmethod
    def _check_text(text: object) -> None:
        if not isinstance(text, str):
            raise SegmentationError(
                f"Text to segment must be a str, got {type(text).__name__}",
                status=STATUS_INVALID_ARGUMENT,
            )

    @staticmethod
    def _check_output_size(text: str, max_bytes: Optional[int]) -> str:
        """Enforce a hard output bound if one was chosen; never truncate."""
        if max_bytes is None:
            return text
        size = len(text.encode("utf-8"))
        if size > max_bytes:
            raise DecodeBufferOverflow(
                f"Decoded text needs {size} bytes but the limit is {max_bytes}",
                required=size,
                limit=max_bytes,
            )
        return text
