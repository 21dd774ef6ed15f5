# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Vocabulary table — the bidirectional piece <-> id mapping of the task vocabulary.

Marian models ship a vocab.json that maps every subword piece the model
knows to the integer id its embedding matrix uses:

    {"</s>": 0, "<unk>": 1, "▁Привет": 3051, ..., "<pad>": 62517}

These ids are NOT the ids SentencePiece assigns internally — the two
numbering spaces are unrelated, which is why the split backend has to go
through piece strings. The table is built once and never mutated, so it can
be shared across threads without locking.
"""

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from mariantok.tokenizer.exceptions import VocabLoadError
from mariantok.utils.filesystem import safe_read

UNK_PIECE = "<unk>"
DEFAULT_UNK_ID = 1


class VocabularyTable:
    """
    Read-only piece -> id dict plus the inverse id -> piece list.

    The inverse list is indexed directly by id and sized max_id + 1. Ids the
    vocabulary skips hold None, which piece_of() renders as "<unk>". An
    empty-string piece is a real entry and comes back as "".
    """

    def __init__(self, piece_to_id: dict[str, int], id_to_piece: list[Optional[str]]) -> None:
        self._piece_to_id = piece_to_id
        self._id_to_piece = id_to_piece
        self._unk_id = piece_to_id.get(UNK_PIECE, DEFAULT_UNK_ID)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> "VocabularyTable":
        """
        Build a table from a parsed piece -> id mapping.

        One pass validates entries and finds the maximum id, then the inverse
        list gets allocated and filled.

        Raises:
            VocabLoadError: Non-string pieces, non-integer or negative ids,
                            or two pieces sharing one id.
        """
        if not isinstance(mapping, Mapping):
            raise VocabLoadError(
                f"Vocabulary must be a JSON object of piece -> id, got {type(mapping).__name__}"
            )

        piece_to_id: dict[str, int] = {}
        max_id = -1
        for piece, token_id in mapping.items():
            if not isinstance(piece, str):
                raise VocabLoadError(f"Vocabulary piece must be a string, got {piece!r}")
            # bool is an int subclass; true/false in vocab.json is corruption, not an id.
            if isinstance(token_id, bool) or not isinstance(token_id, int):
                raise VocabLoadError(f"Id for piece {piece!r} must be an integer, got {token_id!r}")
            if token_id < 0:
                raise VocabLoadError(f"Id for piece {piece!r} is negative: {token_id}")
            piece_to_id[piece] = token_id
            if token_id > max_id:
                max_id = token_id

        id_to_piece: list[Optional[str]] = [None] * (max_id + 1)
        for piece, token_id in piece_to_id.items():
            if id_to_piece[token_id] is not None:
                raise VocabLoadError(
                    f"Id {token_id} is assigned to both {id_to_piece[token_id]!r} and {piece!r}"
                )
            id_to_piece[token_id] = piece

        return cls(piece_to_id, id_to_piece)

    @classmethod
    def load(cls, serialized: Union[str, bytes]) -> "VocabularyTable":
        """
        Build a table from vocab.json contents.

        Raises:
            VocabLoadError: The input isn't valid JSON or isn't a piece -> id object.
        """
        try:
            parsed = json.loads(serialized)
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise VocabLoadError(f"Vocabulary is not valid JSON: {err}") from err
        return cls.from_mapping(parsed)

    @classmethod
    def from_file(cls, vocab_path: Path) -> "VocabularyTable":
        """Read vocab.json from disk and build the table."""
        try:
            raw_text = safe_read(vocab_path)
        except OSError as err:
            raise VocabLoadError(f"Cannot read vocabulary {vocab_path}: {err}") from err
        return cls.load(raw_text)

    @property
    def unk_id(self) -> int:
        """Id of the "<unk>" entry, or 1 when the vocabulary doesn't have one."""
        return self._unk_id

    @property
    def max_id(self) -> int:
        return len(self._id_to_piece) - 1

    def id_of(self, piece: str) -> int:
        """Look up a piece; anything not in the vocabulary maps to the UNK id."""
        return self._piece_to_id.get(piece, self._unk_id)

    def piece_of(self, token_id: int) -> str:
        """Look up an id; negative, out-of-range and unassigned ids map to "<unk>"."""
        if token_id < 0 or token_id >= len(self._id_to_piece):
            return UNK_PIECE
        piece = self._id_to_piece[token_id]
        return piece if piece is not None else UNK_PIECE

    def __contains__(self, piece: object) -> bool:
        return piece in self._piece_to_id

    def __len__(self) -> int:
        return len(self._piece_to_id)
