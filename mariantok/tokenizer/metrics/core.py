# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tokenizer coverage metrics.

Before putting a translation model behind a tokenizer you want to know: does
this vocabulary actually cover the text we're going to feed it? A high UNK
rate or lots of truncated sentences both degrade translations without ever
raising an error, so this module measures them on a sample.
"""

from typing import NamedTuple, Sequence

from mariantok.logging.logger import get_logger
from mariantok.tokenizer.facade.core import MarianTokenizer


class TokenizerMetrics(NamedTuple):
    """All the numbers you'd want to check on a sample of source text."""

    vocab_size: int
    avg_tokens_per_line: float
    unk_rate: float
    truncated_lines: int
    total_lines: int
    total_tokens: int


def compute_metrics(
    tokenizer: MarianTokenizer,
    sample_texts: Sequence[str],
) -> TokenizerMetrics:
    """
    Compute coverage metrics over a set of sample texts.

    Texts are encoded without EOS so the numbers describe the segmentation
    itself:
      - avg_tokens_per_line: lower means less fragmentation
      - unk_rate: fraction of ids that are UNK, should be near zero
      - truncated_lines: lines that filled the whole model_max_length budget
        and most likely lost their tail
    """
    logger = get_logger("mariantok.tokenizer.metrics")
    config = tokenizer.config

    if not sample_texts:
        logger.warning("No sample texts provided for metrics computation")
        return TokenizerMetrics(
            vocab_size=config.vocab_size,
            avg_tokens_per_line=0.0,
            unk_rate=0.0,
            truncated_lines=0,
            total_lines=0,
            total_tokens=0,
        )

    unk_id = tokenizer.unk_id
    total_tokens = 0
    total_unk = 0
    truncated_lines = 0

    for text in sample_texts:
        ids = tokenizer.encode(text, add_eos=False)
        total_tokens += len(ids)
        total_unk += ids.count(unk_id)
        if len(ids) >= config.model_max_length:
            truncated_lines += 1

    total_lines = len(sample_texts)
    avg_tokens_per_line = total_tokens / total_lines
    unk_rate = total_unk / total_tokens if total_tokens > 0 else 0.0

    metrics = TokenizerMetrics(
        vocab_size=config.vocab_size,
        avg_tokens_per_line=round(avg_tokens_per_line, 4),
        unk_rate=round(unk_rate, 6),
        truncated_lines=truncated_lines,
        total_lines=total_lines,
        total_tokens=total_tokens,
    )

    logger.info(
        "Tokenizer metrics computed",
        extra={
            "vocab_size": metrics.vocab_size,
            "avg_tokens_per_line": metrics.avg_tokens_per_line,
            "unk_rate": metrics.unk_rate,
            "truncated_lines": metrics.truncated_lines,
        },
    )

    return metrics
