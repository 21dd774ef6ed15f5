# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tokenization pipeline.

Most callers only need open_tokenizer() and the MarianTokenizer it returns.
"""

from mariantok.tokenizer.facade.core import MarianTokenizer
from mariantok.tokenizer.loader.core import open_tokenizer

__all__ = ["MarianTokenizer", "open_tokenizer"]
