# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for tokenizer coverage metrics.
"""

from mariantok.tokenizer.facade.core import MarianTokenizer
from mariantok.tokenizer.metrics.core import TokenizerMetrics, compute_metrics


class TestComputeMetrics:
    def test_counts_tokens_and_unks(self, split_tokenizer: MarianTokenizer) -> None:
        metrics = compute_metrics(split_tokenizer, ["hello world", "the zebra"])
        assert metrics.total_lines == 2
        assert metrics.total_tokens == 4
        assert metrics.avg_tokens_per_line == 2.0
        assert metrics.unk_rate == 0.25
        assert metrics.truncated_lines == 0
        assert metrics.vocab_size == 7

    def test_lines_that_fill_the_budget_count_as_truncated(
        self, split_tokenizer: MarianTokenizer
    ) -> None:
        long_line = "hello world the cat " * 4
        metrics = compute_metrics(split_tokenizer, [long_line, "cat"])
        assert metrics.truncated_lines == 1
        assert metrics.total_tokens == 8 + 1

    def test_empty_sample(self, split_tokenizer: MarianTokenizer) -> None:
        metrics = compute_metrics(split_tokenizer, [])
        assert metrics == TokenizerMetrics(
            vocab_size=7,
            avg_tokens_per_line=0.0,
            unk_rate=0.0,
            truncated_lines=0,
            total_lines=0,
            total_tokens=0,
        )

    def test_blank_lines_do_not_divide_by_zero(self, split_tokenizer: MarianTokenizer) -> None:
        metrics = compute_metrics(split_tokenizer, ["", "   "])
        assert metrics.total_tokens == 0
        assert metrics.unk_rate == 0.0
