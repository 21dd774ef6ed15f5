# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Batch assembly — N texts in, one rectangular id matrix and attention mask out.

The contract the translation model expects:

    input_ids       attention_mask
    [a  b  c  </s>]  [1 1 1 1]
    [d  </s> P  P ]  [1 1 0 0]

Every sequence ends with EOS, sequences are right-padded with pad_token_id
to the longest sequence in the batch (not to model_max_length), and the mask
is 1 exactly where a real token sits. Padding on the wrong side or a mask
that's off by one doesn't crash anything — the model just translates worse.

Batches are all-or-nothing: if any text fails to encode, the error
propagates and no partial batch is produced.
"""

from typing import NamedTuple, Sequence

import torch

from mariantok.config.schema import MarianConfig
from mariantok.tokenizer.encoder.core import encode
from mariantok.tokenizer.segmenter.base import SegmenterAdapter


class EncodedBatch(NamedTuple):
    """What you get back from encode_batch(). Unpacks as (input_ids, attention_mask)."""

    input_ids: list[list[int]]
    attention_mask: list[list[int]]

    @property
    def sequence_lengths(self) -> list[int]:
        """Real (unpadded) length of each row."""
        return [sum(row) for row in self.attention_mask]

    @property
    def shape(self) -> tuple[int, int]:
        if not self.input_ids:
            return (0, 0)
        return (len(self.input_ids), len(self.input_ids[0]))

    def to_tensors(self) -> tuple[torch.Tensor, torch.Tensor]:
        """
        Return (input_ids, attention_mask) as int64 tensors of shape [batch, max_used].

        An empty batch gives two tensors of shape [0, 0].
        """
        if not self.input_ids:
            empty = torch.zeros((0, 0), dtype=torch.long)
            return empty, empty.clone()
        return (
            torch.tensor(self.input_ids, dtype=torch.long),
            torch.tensor(self.attention_mask, dtype=torch.long),
        )


def build_attention_mask(sequence_lengths: Sequence[int], max_len: int) -> list[list[int]]:
    """
    Build a [batch, max_len] 0/1 mask from per-row sequence lengths.

    Lengths outside [0, max_len] are clamped, so a bad length can never
    produce a ragged mask.
    """
    mask: list[list[int]] = []
    for length in sequence_lengths:
        used = min(max(length, 0), max_len)
        mask.append([1] * used + [0] * (max_len - used))
    return mask


def pad_sequences(
    sequences: Sequence[Sequence[int]],
    pad_id: int,
    max_len: int,
) -> list[list[int]]:
    """Right-pad each sequence with pad_id up to max_len."""
    return [list(seq) + [pad_id] * (max_len - len(seq)) for seq in sequences]


def encode_batch(
    segmenter: SegmenterAdapter,
    config: MarianConfig,
    texts: Sequence[str],
) -> EncodedBatch:
    """
    Encode a batch of texts into a padded id matrix plus attention mask.

    Each text is encoded with EOS appended. The width of the matrix is the
    longest encoded sequence in this batch. An empty list of texts gives
    empty matrices, not an error.
    """
    sequences = [encode(segmenter, config, text, add_eos=True) for text in texts]
    if not sequences:
        return EncodedBatch(input_ids=[], attention_mask=[])

    lengths = [len(seq) for seq in sequences]
    max_used = max(lengths)

    return EncodedBatch(
        input_ids=pad_sequences(sequences, config.pad_token_id, max_used),
        attention_mask=build_attention_mask(lengths, max_used),
    )
