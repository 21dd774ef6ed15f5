# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Fused backend: a HuggingFace `tokenizers` model that segments and maps in one step.

A tokenizer.json converted from a Marian model carries the task vocabulary
inside its model section (typically a Unigram model with a Metaspace
pre-tokenizer and decoder), so the ids it returns are already the ids the
translation model expects. No vocab.json hop is needed.

The serialized tokenizer also carries configuration of its own: padding
params hold the pad id, truncation params hold the max length, and the
vocabulary knows the EOS id. config_overrides() exposes those so the loader
can normalize them into the same MarianConfig shape the split backend gets
from config.json. The adapter works on a private copy with padding and
truncation switched off, since the encode pipeline and batch assembler own
both; the caller's tokenizer is left as it was.

Special added tokens ("</s>", "<pad>") are matched in raw text by the
engine. Those ids are control ids, not content, so text that spells one out
segments to UNK; EOS only ever comes from the encode pipeline.

The Rust-backed Tokenizer is safe to call from several threads at once.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from tokenizers import Tokenizer

from mariantok.logging.logger import get_logger
from mariantok.tokenizer.exceptions import (
    STATUS_ENGINE_FAILURE,
    STATUS_INVALID_ARGUMENT,
    SegmentationError,
)
from mariantok.tokenizer.segmenter.base import SegmenterAdapter
from mariantok.tokenizer.vocab.core import DEFAULT_UNK_ID, UNK_PIECE

logger: logging.Logger = get_logger(__name__)

EOS_PIECE = "</s>"
PAD_PIECE = "<pad>"


class FusedSegmenter(SegmenterAdapter):
    """Adapter over a `tokenizers.Tokenizer` whose vocabulary is the task vocabulary."""

    thread_safe = True

    def __init__(
        self,
        tokenizer: Tokenizer,
        eos_piece: str = EOS_PIECE,
        unk_piece: str = UNK_PIECE,
        pad_piece: str = PAD_PIECE,
    ) -> None:
        super().__init__()
        # Work on a private copy; the caller's tokenizer keeps its padding and truncation.
        self._tokenizer = Tokenizer.from_str(tokenizer.to_str())
        self._unk_id = self._tokenizer.token_to_id(unk_piece)
        self._vocab_size = self._tokenizer.get_vocab_size(with_added_tokens=True)
        self._overrides = self._read_model_config(self._tokenizer, eos_piece, pad_piece)
        self._control_ids = frozenset(
            token_id
            for token_id, added in self._tokenizer.get_added_tokens_decoder().items()
            if added.special
        )

        self._tokenizer.no_padding()
        self._tokenizer.no_truncation()

    @classmethod
    def from_file(cls, tokenizer_path: Path) -> "FusedSegmenter":
        """
        Load a serialized tokenizer.json.

        Raises:
            SegmentationError: The file is missing or can't be deserialized.
        """
        if not tokenizer_path.is_file():
            raise SegmentationError(
                f"Tokenizer file not found: {tokenizer_path}",
                status=STATUS_INVALID_ARGUMENT,
            )
        try:
            tokenizer = Tokenizer.from_file(str(tokenizer_path))
        except Exception as err:  # tokenizers raises a bare Exception on bad files
            raise SegmentationError(
                f"Cannot load tokenizer {tokenizer_path}: {err}",
                status=STATUS_ENGINE_FAILURE,
            ) from err
        return cls(tokenizer)

    @staticmethod
    def _read_model_config(tokenizer: Tokenizer, eos_piece: str, pad_piece: str) -> dict[str, Any]:
        overrides: dict[str, Any] = {"vocab_size": tokenizer.get_vocab_size(with_added_tokens=True)}

        eos_id = tokenizer.token_to_id(eos_piece)
        if eos_id is not None:
            overrides["eos_token_id"] = eos_id

        padding = tokenizer.padding
        if padding is not None:
            overrides["pad_token_id"] = padding["pad_id"]
        else:
            pad_id = tokenizer.token_to_id(pad_piece)
            if pad_id is not None:
                overrides["pad_token_id"] = pad_id

        truncation = tokenizer.truncation
        if truncation is not None:
            overrides["model_max_length"] = truncation["max_length"]

        return overrides

    def config_overrides(self) -> dict[str, Any]:
        return dict(self._overrides)

    @property
    def unk_id(self) -> Optional[int]:
        return self._unk_id

    def _fallback_unk(self) -> int:
        return self._unk_id if self._unk_id is not None else DEFAULT_UNK_ID

    def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception as err:  # Rust-side failures surface as bare Exception
            raise SegmentationError(f"Tokenizer call failed: {err}") from err

    def segment(self, text: str) -> list[str]:
        self._ensure_open()
        self._check_text(text)
        encoding = self._call(self._tokenizer.encode, text, add_special_tokens=False)
        return [
            UNK_PIECE if token_id in self._control_ids else token
            for token, token_id in zip(encoding.tokens, encoding.ids)
        ]

    def piece_to_id(self, piece: str) -> int:
        self._ensure_open()
        token_id = self._tokenizer.token_to_id(piece)
        return token_id if token_id is not None else self._fallback_unk()

    def id_to_piece(self, token_id: int) -> str:
        self._ensure_open()
        if token_id < 0 or token_id >= self._vocab_size:
            return UNK_PIECE
        piece = self._tokenizer.id_to_token(token_id)
        return piece if piece else UNK_PIECE

    def encode_ids(self, text: str, max_pieces: int) -> list[int]:
        self._ensure_open()
        self._check_text(text)
        if max_pieces <= 0:
            raise SegmentationError(
                f"max_pieces must be positive, got {max_pieces}",
                status=STATUS_INVALID_ARGUMENT,
            )

        encoding = self._call(self._tokenizer.encode, text, add_special_tokens=False)
        unk = self._fallback_unk()
        ids = [unk if token_id in self._control_ids else token_id for token_id in encoding.ids]
        if len(ids) > max_pieces:
            logger.debug(
                "Input truncated to token budget",
                extra={"pieces": len(ids), "budget": max_pieces},
            )
            ids = ids[:max_pieces]
        return ids

    def decode_pieces(self, pieces: Sequence[str], max_bytes: Optional[int] = None) -> str:
        self._ensure_open()
        if not pieces:
            return ""
        decoder = self._tokenizer.decoder
        if decoder is None:
            text = "".join(pieces)
        else:
            text = self._call(decoder.decode, list(pieces))
        return self._check_output_size(text, max_bytes)

    def decode_ids(self, ids: Sequence[int], max_bytes: Optional[int] = None) -> str:
        self._ensure_open()
        if not ids:
            return ""
        unk = self._fallback_unk()
        safe_ids = [
            token_id if 0 <= token_id < self._vocab_size else unk for token_id in ids
        ]
        text = self._call(self._tokenizer.decode, safe_ids, skip_special_tokens=False)
        return self._check_output_size(text, max_bytes)

    def _release(self) -> None:
        self._tokenizer = None
