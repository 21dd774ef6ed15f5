# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Split-responsibility backend: SentencePiece segments, vocab.json maps.

This is the classic Marian layout. source.spm segments source-language text,
target.spm detokenizes target-language pieces, and vocab.json holds the ids
the model was trained on. SentencePiece numbers its pieces in its own order,
so every id it returns takes two hops before the model can use it:

    spm id --id_to_piece--> "▁Привет" --VocabularyTable--> 3051

Skipping the middle hop gives ids that look valid and point at entirely
different embeddings. That's the silent-corruption failure this adapter
exists to prevent.

SentencePieceProcessor handles are not treated as safe for concurrent
calls (thread_safe = False); the facade serializes access to one handle.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import sentencepiece as spm

from mariantok.logging.logger import get_logger
from mariantok.tokenizer.exceptions import (
    STATUS_ENGINE_FAILURE,
    STATUS_INVALID_ARGUMENT,
    SegmentationError,
)
from mariantok.tokenizer.segmenter.base import SegmenterAdapter
from mariantok.tokenizer.vocab.core import VocabularyTable

logger: logging.Logger = get_logger(__name__)


def load_processor(model_path: Path) -> spm.SentencePieceProcessor:
    """
    Load a trained SentencePiece model file.

    Raises:
        SegmentationError: The file is missing or isn't a SentencePiece model.
    """
    if not model_path.is_file():
        raise SegmentationError(
            f"SentencePiece model not found: {model_path}",
            status=STATUS_INVALID_ARGUMENT,
        )
    try:
        return spm.SentencePieceProcessor(model_file=str(model_path))
    except (OSError, RuntimeError, ValueError) as err:
        raise SegmentationError(
            f"Cannot load SentencePiece model {model_path}: {err}",
            status=STATUS_ENGINE_FAILURE,
        ) from err


class SentencePieceSegmenter(SegmenterAdapter):
    """
    Adapter over one or two SentencePiece processors plus the task vocabulary.

    The source processor is used for everything on the encode side; the
    target processor for detokenization. When a model only has one .spm
    file, pass it as source and leave target out.
    """

    thread_safe = False

    def __init__(
        self,
        source: Any,
        vocabulary: VocabularyTable,
        target: Optional[Any] = None,
    ) -> None:
        super().__init__()
        self._source = source
        self._target = target if target is not None else source
        self._vocabulary = vocabulary

    @classmethod
    def from_files(
        cls,
        source_path: Path,
        vocabulary: VocabularyTable,
        target_path: Optional[Path] = None,
    ) -> "SentencePieceSegmenter":
        source = load_processor(source_path)
        target = load_processor(target_path) if target_path is not None else None
        return cls(source, vocabulary, target)

    @property
    def vocabulary(self) -> VocabularyTable:
        return self._vocabulary

    @property
    def unk_id(self) -> Optional[int]:
        self._ensure_open()
        unk_piece = self._call(self._source.id_to_piece, self._source.unk_id())
        return self._vocabulary.id_of(unk_piece)

    def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one engine call, turning whatever it raises into SegmentationError."""
        try:
            return fn(*args, **kwargs)
        except (RuntimeError, ValueError, TypeError, IndexError) as err:
            raise SegmentationError(f"SentencePiece call failed: {err}") from err

    def segment(self, text: str) -> list[str]:
        self._ensure_open()
        self._check_text(text)
        return list(self._call(self._source.encode, text, out_type=str))

    def piece_to_id(self, piece: str) -> int:
        return self._vocabulary.id_of(piece)

    def id_to_piece(self, token_id: int) -> str:
        return self._vocabulary.piece_of(token_id)

    def encode_ids(self, text: str, max_pieces: int) -> list[int]:
        self._ensure_open()
        self._check_text(text)
        if max_pieces <= 0:
            raise SegmentationError(
                f"max_pieces must be positive, got {max_pieces}",
                status=STATUS_INVALID_ARGUMENT,
            )

        local_ids = self._call(self._source.encode, text, out_type=int)
        if len(local_ids) > max_pieces:
            logger.debug(
                "Input truncated to token budget",
                extra={"pieces": len(local_ids), "budget": max_pieces},
            )
            local_ids = local_ids[:max_pieces]

        ids: list[int] = []
        for local_id in local_ids:
            piece = self._call(self._source.id_to_piece, local_id)
            ids.append(self._vocabulary.id_of(piece))
        return ids

    def decode_pieces(self, pieces: Sequence[str], max_bytes: Optional[int] = None) -> str:
        self._ensure_open()
        if not pieces:
            return ""
        text = self._call(self._target.decode_pieces, list(pieces))
        return self._check_output_size(text, max_bytes)

    def decode_ids(self, ids: Sequence[int], max_bytes: Optional[int] = None) -> str:
        pieces = [self._vocabulary.piece_of(token_id) for token_id in ids]
        return self.decode_pieces(pieces, max_bytes)

    def _release(self) -> None:
        self._source = None
        self._target = None
