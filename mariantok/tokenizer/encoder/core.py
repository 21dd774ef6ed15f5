# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Encoding engine — turns one text into the id sequence the model sees.

Every call with the same segmenter, config and text produces the same ids.
No randomness, no side effects, nothing cached between calls, so a failed
call can't influence the next one.

The one subtle part is the token budget. model_max_length counts EOS, so
when we append EOS the segmenter only gets model_max_length - 1 slots.
Getting this off by one gives sequences one token longer than the model's
position embeddings, which fails far away from here.
"""

from mariantok.config.schema import MarianConfig
from mariantok.tokenizer.exceptions import InvalidConfig
from mariantok.tokenizer.segmenter.base import SegmenterAdapter


def token_budget(config: MarianConfig, add_eos: bool) -> int:
    """
    How many segmenter pieces fit in one sequence.

    Raises:
        InvalidConfig: If nothing fits (e.g. model_max_length=1 with EOS).
    """
    budget = config.model_max_length - 1 if add_eos else config.model_max_length
    if budget <= 0:
        raise InvalidConfig(
            f"model_max_length={config.model_max_length} leaves no room for tokens "
            f"(add_eos={add_eos})"
        )
    return budget


def encode(
    segmenter: SegmenterAdapter,
    config: MarianConfig,
    text: str,
    add_eos: bool,
) -> list[int]:
    """
    Encode a single text string into a list of task vocabulary ids.

    The segmenter truncates text that doesn't fit the budget and substitutes
    the UNK id for pieces the vocabulary doesn't know. If add_eos is set,
    eos_token_id is appended last, so the result is never longer than
    model_max_length.
    """
    budget = token_budget(config, add_eos)
    ids = segmenter.encode_ids(text, budget)
    if add_eos:
        ids.append(config.eos_token_id)
    return ids
