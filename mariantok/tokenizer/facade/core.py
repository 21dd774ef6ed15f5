# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The tokenizer facade — the one object callers hold.

MarianTokenizer ties the config, the segmenter adapter and the encode /
batch / decode pipelines together behind a small surface:

    tok = open_tokenizer("models/opus-mt-ru-en")
    ids = tok.encode("Привет, как у тебя дела?")
    input_ids, attention_mask = tok.encode_batch(["...", "..."])
    text = tok.decode(generated_ids)
    tok.close()

It exclusively owns the segmenter: close() releases it, and every call
after that raises Closed instead of touching a released engine.

Thread safety: the config is frozen and shared, so it needs no lock. The
segmenter is the only thing with native state. If the adapter says it isn't
safe for concurrent calls, every call into it goes through a per-instance
lock; otherwise calls run in parallel. Lifecycle (construction and close)
must still be serialized by the caller.
"""

import logging
import threading
from contextlib import nullcontext
from typing import ContextManager, Optional, Sequence

from mariantok.config.schema import MarianConfig, TokenizerSettings
from mariantok.logging.logger import get_logger
from mariantok.tokenizer.batch.core import EncodedBatch
from mariantok.tokenizer.batch.core import encode_batch as _encode_batch
from mariantok.tokenizer.decoder.core import decode as _decode
from mariantok.tokenizer.decoder.core import decode_batch as _decode_batch
from mariantok.tokenizer.encoder.core import encode as _encode
from mariantok.tokenizer.exceptions import Closed
from mariantok.tokenizer.segmenter.base import SegmenterAdapter
from mariantok.tokenizer.vocab.core import UNK_PIECE

logger: logging.Logger = get_logger(__name__)


def resolve_unk_id(segmenter: SegmenterAdapter, unk_source: str) -> int:
    """
    Pick the UNK id used for decode-time filtering.

    "vocab" looks up the "<unk>" piece in the task vocabulary (falling back
    to 1 when it's absent). "backend" uses the id the segmentation engine
    reports, and falls back to the vocabulary when the engine has none. The
    two can disagree for real models, which is why this is a setting.
    """
    if unk_source == "backend":
        backend_unk = segmenter.unk_id
        if backend_unk is not None:
            return backend_unk
    return segmenter.piece_to_id(UNK_PIECE)


class MarianTokenizer:
    """Encode/decode facade over a segmenter adapter and a normalized config."""

    def __init__(
        self,
        config: MarianConfig,
        segmenter: SegmenterAdapter,
        settings: Optional[TokenizerSettings] = None,
    ) -> None:
        self._config = config
        self._segmenter = segmenter
        self._settings = settings if settings is not None else TokenizerSettings()
        self._lock: Optional[threading.Lock] = None if segmenter.thread_safe else threading.Lock()

        self._unk_id = resolve_unk_id(segmenter, self._settings.unk_source)
        self._special_ids = frozenset({config.eos_token_id, config.pad_token_id, self._unk_id})
        self._closed = False

    def __enter__(self) -> "MarianTokenizer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"MarianTokenizer(backend={type(self._segmenter).__name__}, "
            f"vocab_size={self._config.vocab_size}, state={state})"
        )

    @property
    def config(self) -> MarianConfig:
        """
        The cached, normalized config. Always the same frozen instance —
        read it, don't try to modify it.
        """
        return self._config

    @property
    def settings(self) -> TokenizerSettings:
        return self._settings

    @property
    def unk_id(self) -> int:
        return self._unk_id

    @property
    def special_ids(self) -> frozenset[int]:
        """Ids removed by decode(skip_special=True): EOS, PAD and UNK."""
        return self._special_ids

    @property
    def closed(self) -> bool:
        return self._closed

    def _guard(self) -> ContextManager[object]:
        if self._closed:
            raise Closed("Tokenizer has been closed")
        return self._lock if self._lock is not None else nullcontext()

    def encode(self, text: str, add_eos: bool = True) -> list[int]:
        """Encode one source sentence; EOS is appended when add_eos is set."""
        with self._guard():
            return _encode(self._segmenter, self._config, text, add_eos)

    def encode_batch(self, texts: Sequence[str]) -> EncodedBatch:
        """
        Encode a batch of source sentences, always with EOS.

        Returns (input_ids, attention_mask), both [batch, longest sequence],
        right-padded with pad_token_id.
        """
        with self._guard():
            return _encode_batch(self._segmenter, self._config, texts)

    def decode(self, ids: Sequence[int], skip_special: bool = True) -> str:
        """Decode a target id sequence; EOS / PAD / UNK are dropped when skip_special is set."""
        with self._guard():
            return _decode(
                self._segmenter,
                ids,
                self._special_ids,
                skip_special,
                self._settings.max_decode_bytes,
            )

    def decode_batch(self, ids_batch: Sequence[Sequence[int]], skip_special: bool = True) -> list[str]:
        """Decode several target sequences, e.g. the rows of a generate() output."""
        with self._guard():
            return _decode_batch(
                self._segmenter,
                ids_batch,
                self._special_ids,
                skip_special,
                self._settings.max_decode_bytes,
            )

    def close(self) -> None:
        """Release the segmenter. Calling it again is a no-op."""
        if self._closed:
            return
        self._segmenter.close()
        self._closed = True
        logger.info("Tokenizer closed", extra={"backend": type(self._segmenter).__name__})
