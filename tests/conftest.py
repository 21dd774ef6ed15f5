# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for mariantok tests.

Three kinds of segmentation backends show up across the test suite:

  - FakeSentencePiece: a whitespace splitter that quacks like
    SentencePieceProcessor. Its local ids are deliberately ordered
    differently from the task vocabulary, so any test that forgets the
    piece hop gets the wrong ids.
  - A real HuggingFace `tokenizers` Unigram model built in memory and
    saved as tokenizer.json, for the fused backend.
  - A real SentencePiece model trained on a tiny corpus, for end-to-end
    loading of the split layout.
"""

import json
from pathlib import Path
from typing import Optional

import pytest
import sentencepiece as spm
from tokenizers import Tokenizer, decoders, pre_tokenizers
from tokenizers.models import Unigram

from mariantok.config.schema import MarianConfig, normalize_config
from mariantok.tokenizer.facade.core import MarianTokenizer
from mariantok.tokenizer.segmenter.split import SentencePieceSegmenter
from mariantok.tokenizer.vocab.core import VocabularyTable

# Task vocabulary the model "was trained on". EOS=0, UNK=1, PAD=6, Marian style.
TASK_VOCAB = {
    "</s>": 0,
    "<unk>": 1,
    "▁hello": 2,
    "▁world": 3,
    "▁the": 4,
    "▁cat": 5,
    "<pad>": 6,
}

# SentencePiece's own numbering. "▁zebra" is known to the segmenter but not
# to the task vocabulary.
LOCAL_PIECES = ["<unk>", "<s>", "</s>", "▁world", "▁hello", "▁the", "▁zebra", "▁cat"]


class FakeSentencePiece:
    """Whitespace-splitting stand-in for sentencepiece.SentencePieceProcessor."""

    def __init__(self, pieces: Optional[list[str]] = None) -> None:
        self._pieces = list(pieces if pieces is not None else LOCAL_PIECES)
        self._ids = {piece: idx for idx, piece in enumerate(self._pieces)}
        self.fail_with: Optional[Exception] = None
        self.encode_calls = 0

    def unk_id(self) -> int:
        return self._ids["<unk>"]

    def encode(self, text: str, out_type: type = int) -> list:
        self.encode_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        pieces = ["▁" + word for word in text.split()]
        if out_type is str:
            return pieces
        return [self._ids.get(piece, self.unk_id()) for piece in pieces]

    def id_to_piece(self, piece_id: int) -> str:
        if piece_id < 0 or piece_id >= len(self._pieces):
            raise IndexError("piece id is out of range.")
        return self._pieces[piece_id]

    def decode_pieces(self, pieces: list[str]) -> str:
        return "".join(pieces).replace("▁", " ").strip()


@pytest.fixture()
def task_vocab() -> dict[str, int]:
    return dict(TASK_VOCAB)


@pytest.fixture()
def vocabulary(task_vocab: dict[str, int]) -> VocabularyTable:
    return VocabularyTable.from_mapping(task_vocab)


@pytest.fixture()
def marian_config() -> MarianConfig:
    """A tiny normalized config: 8 ids per sequence, EOS included."""
    return normalize_config(
        {
            "vocab_size": 7,
            "eos_token_id": 0,
            "pad_token_id": 6,
            "decoder_start_token_id": 6,
            "max_length": 8,
            "bad_words_ids": [[6]],
        }
    )


@pytest.fixture()
def fake_processor() -> FakeSentencePiece:
    return FakeSentencePiece()


@pytest.fixture()
def split_segmenter(
    fake_processor: FakeSentencePiece, vocabulary: VocabularyTable
) -> SentencePieceSegmenter:
    return SentencePieceSegmenter(fake_processor, vocabulary)


@pytest.fixture()
def split_tokenizer(
    marian_config: MarianConfig, split_segmenter: SentencePieceSegmenter
) -> MarianTokenizer:
    return MarianTokenizer(marian_config, split_segmenter)


def build_hf_tokenizer(max_length: int = 16) -> Tokenizer:
    """
    A Unigram tokenizer over TASK_VOCAB with Metaspace pre-tokenization,
    the same shape a converted Marian tokenizer.json has.
    """
    vocab = [(piece, 0.0 if piece.startswith("<") else -1.0) for piece in TASK_VOCAB]
    tokenizer = Tokenizer(Unigram(vocab, unk_id=TASK_VOCAB["<unk>"]))
    tokenizer.pre_tokenizer = pre_tokenizers.Metaspace()
    tokenizer.decoder = decoders.Metaspace()
    tokenizer.add_special_tokens(["</s>", "<unk>", "<pad>"])
    tokenizer.enable_padding(pad_id=TASK_VOCAB["<pad>"], pad_token="<pad>")
    tokenizer.enable_truncation(max_length=max_length)
    return tokenizer


@pytest.fixture()
def hf_tokenizer() -> Tokenizer:
    return build_hf_tokenizer()


@pytest.fixture()
def fused_model_dir(tmp_path: Path) -> Path:
    """A fused model directory: just tokenizer.json, no config.json."""
    model_dir = tmp_path / "fused-model"
    model_dir.mkdir()
    build_hf_tokenizer().save(str(model_dir / "tokenizer.json"))
    return model_dir


@pytest.fixture()
def untruncated_fused_model_dir(tmp_path: Path) -> Path:
    """
    A fused directory whose tokenizer.json has no truncation params, so the
    length has to come from config.json.
    """
    model_dir = tmp_path / "fused-untruncated"
    model_dir.mkdir()
    tokenizer = build_hf_tokenizer()
    tokenizer.no_truncation()
    tokenizer.save(str(model_dir / "tokenizer.json"))
    (model_dir / "config.json").write_text(
        json.dumps({"max_length": 128, "model_max_length": 0}), encoding="utf-8"
    )
    return model_dir


SPM_CORPUS = [
    "hello world",
    "the cat sat on the mat",
    "hello cat",
    "the world is round",
    "a small world of cats",
] * 20


@pytest.fixture(scope="session")
def spm_model_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """
    A split model directory with a real, freshly trained SentencePiece model.

    vocab.json numbers the pieces in reverse SentencePiece order (after the
    Marian specials), so the ids only line up if the piece hop happens.
    """
    model_dir = tmp_path_factory.mktemp("spm-model")
    corpus_file = model_dir / "corpus.txt"
    corpus_file.write_text("\n".join(SPM_CORPUS) + "\n", encoding="utf-8")

    spm.SentencePieceTrainer.train(
        input=str(corpus_file),
        model_prefix=str(model_dir / "source"),
        vocab_size=40,
        model_type="bpe",
        character_coverage=1.0,
        hard_vocab_limit=False,
    )
    (model_dir / "source.model").rename(model_dir / "source.spm")
    (model_dir / "source.vocab").unlink()
    corpus_file.unlink()

    processor = spm.SentencePieceProcessor(model_file=str(model_dir / "source.spm"))
    pieces = [processor.id_to_piece(i) for i in range(processor.get_piece_size())]

    vocab = {"</s>": 0, "<unk>": 1}
    next_id = 2
    for piece in reversed(pieces):
        if piece in vocab or piece == "<s>":
            continue
        vocab[piece] = next_id
        next_id += 1
    vocab["<pad>"] = next_id

    (model_dir / "vocab.json").write_text(json.dumps(vocab, ensure_ascii=False), encoding="utf-8")
    (model_dir / "config.json").write_text(
        json.dumps(
            {
                "vocab_size": next_id + 1,
                "decoder_vocab_size": next_id + 1,
                "eos_token_id": 0,
                "pad_token_id": next_id,
                "decoder_start_token_id": next_id,
                "max_length": 32,
                "model_max_length": 0,
                "bad_words_ids": [[next_id]],
                "architectures": ["MarianMTModel"],
                "d_model": 512,
            }
        ),
        encoding="utf-8",
    )
    return model_dir
