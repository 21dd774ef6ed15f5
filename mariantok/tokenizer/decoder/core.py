# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Decoding engine — turns model output ids back into text.

Mirror of the encoder. For text the vocabulary fully covers,
decode(encode(text, add_eos=False)) gives back the original text.

Generated sequences are full of control tokens (EOS at the end, PAD after
it in a batch, UNK wherever the model gave up). With skip_special those are
dropped before detokenization, keeping everything else in order.
"""

from typing import AbstractSet, Any, Iterable, Optional, Sequence

import torch

from mariantok.tokenizer.segmenter.base import SegmenterAdapter


def as_id_list(ids: Iterable[Any]) -> list[int]:
    """
    Turn a row of ids into plain Python ints.

    generate() hands back torch tensors, whose elements hash differently
    from ints, so set membership against special_ids would silently miss.
    """
    if isinstance(ids, torch.Tensor):
        return [int(token_id) for token_id in ids.reshape(-1).tolist()]
    return [int(token_id) for token_id in ids]


def filter_special_ids(ids: Sequence[int], special_ids: AbstractSet[int]) -> list[int]:
    """Drop every id in special_ids, preserving the order of the rest."""
    return [token_id for token_id in as_id_list(ids) if token_id not in special_ids]


def decode(
    segmenter: SegmenterAdapter,
    ids: Sequence[int],
    special_ids: AbstractSet[int],
    skip_special: bool,
    max_bytes: Optional[int] = None,
) -> str:
    """
    Decode a list of token ids back into a text string.

    ids may be a list of ints or a 1-d torch tensor. An empty input (or one
    that's empty after filtering) decodes to "". Ids the vocabulary can't
    resolve come back as "<unk>" pieces rather than failing the whole call.

    Raises:
        DecodeBufferOverflow: If max_bytes is set and the text is larger.
    """
    id_list = as_id_list(ids)
    if skip_special:
        id_list = filter_special_ids(id_list, special_ids)

    if not id_list:
        return ""

    return segmenter.decode_ids(id_list, max_bytes)


def decode_batch(
    segmenter: SegmenterAdapter,
    ids_batch: Sequence[Sequence[int]],
    special_ids: AbstractSet[int],
    skip_special: bool,
    max_bytes: Optional[int] = None,
) -> list[str]:
    """
    Decode multiple id sequences; fails as a whole if any row fails.

    A 2-d tensor (e.g. generate() output) is decoded row by row.
    """
    if isinstance(ids_batch, torch.Tensor):
        ids_batch = ids_batch.tolist()
    return [
        decode(segmenter, ids, special_ids, skip_special, max_bytes) for ids in ids_batch
    ]
