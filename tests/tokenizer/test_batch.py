# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for batch assembly: right padding, masks, and tensor conversion.
"""

import pytest
import torch

from mariantok.config.schema import MarianConfig
from mariantok.tokenizer.batch.core import (
    EncodedBatch,
    build_attention_mask,
    encode_batch,
    pad_sequences,
)
from mariantok.tokenizer.exceptions import SegmentationError
from mariantok.tokenizer.segmenter.split import SentencePieceSegmenter


class TestEncodeBatch:
    def test_rows_are_right_padded_to_the_longest(
        self, split_segmenter: SentencePieceSegmenter, marian_config: MarianConfig
    ) -> None:
        input_ids, attention_mask = encode_batch(
            split_segmenter, marian_config, ["hello world the", "cat"]
        )
        assert input_ids == [[2, 3, 4, 0], [5, 0, 6, 6]]
        assert attention_mask == [[1, 1, 1, 1], [1, 1, 0, 0]]

    def test_width_is_not_model_max_length(
        self, split_segmenter: SentencePieceSegmenter, marian_config: MarianConfig
    ) -> None:
        batch = encode_batch(split_segmenter, marian_config, ["hello", "world"])
        assert batch.shape == (2, 2)
        assert batch.shape[1] < marian_config.model_max_length

    def test_every_row_matches_single_encode(
        self, split_segmenter: SentencePieceSegmenter, marian_config: MarianConfig
    ) -> None:
        texts = ["the cat", "hello world the cat hello world the cat", "zebra"]
        batch = encode_batch(split_segmenter, marian_config, texts)
        for row, mask_row, length in zip(
            batch.input_ids, batch.attention_mask, batch.sequence_lengths
        ):
            assert len(row) == len(mask_row) == batch.shape[1]
            assert row[length - 1] == marian_config.eos_token_id
            assert all(token == marian_config.pad_token_id for token in row[length:])
        assert max(batch.sequence_lengths) == marian_config.model_max_length

    def test_empty_batch(
        self, split_segmenter: SentencePieceSegmenter, marian_config: MarianConfig
    ) -> None:
        batch = encode_batch(split_segmenter, marian_config, [])
        assert batch == ([], [])
        assert batch.shape == (0, 0)

    def test_failure_aborts_the_whole_batch(
        self, split_segmenter: SentencePieceSegmenter, marian_config: MarianConfig
    ) -> None:
        with pytest.raises(SegmentationError):
            encode_batch(split_segmenter, marian_config, ["hello", 42])  # type: ignore[list-item]


class TestHelpers:
    def test_mask_clamps_lengths(self) -> None:
        assert build_attention_mask([5, -1, 2], 3) == [[1, 1, 1], [0, 0, 0], [1, 1, 0]]

    def test_pad_sequences(self) -> None:
        assert pad_sequences([[1], [2, 3, 4]], pad_id=9, max_len=3) == [[1, 9, 9], [2, 3, 4]]


class TestTensors:
    def test_to_tensors(self) -> None:
        batch = EncodedBatch(input_ids=[[2, 3, 0], [5, 0, 6]], attention_mask=[[1, 1, 1], [1, 1, 0]])
        input_ids, attention_mask = batch.to_tensors()
        assert input_ids.dtype == torch.long
        assert tuple(input_ids.shape) == (2, 3)
        assert attention_mask.sum().item() == 5

    def test_empty_batch_to_tensors(self) -> None:
        input_ids, attention_mask = EncodedBatch(input_ids=[], attention_mask=[]).to_tensors()
        assert tuple(input_ids.shape) == (0, 0)
        assert tuple(attention_mask.shape) == (0, 0)
