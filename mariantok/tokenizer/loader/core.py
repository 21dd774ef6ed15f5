# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model-directory loader — open_tokenizer() builds a ready MarianTokenizer.

A Marian model directory looks like one of these:

    split (SentencePiece)            fused (HuggingFace tokenizers)
    ├── config.json                  ├── tokenizer.json
    ├── vocab.json                   ├── config.json      (optional)
    ├── source.spm                   └── checksum.txt     (optional)
    ├── target.spm   (optional)
    └── checksum.txt (optional)

Here's what happens when you open one:

  1. Resolve settings (explicit, or tokenizer.yaml in the directory, or defaults)
  2. Pick the backend from settings or from what's in the directory
  3. Verify checksum.txt if there is one
  4. Load config + vocabulary and acquire the segmentation engine
  5. Wrap it all in a MarianTokenizer

The loader is strict. A missing file, a bad checksum or a config that
doesn't parse stops everything, and any engine acquired before the failure
is closed before the error propagates. You never get a half-built tokenizer.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from mariantok.config.exceptions import ConfigLoadError
from mariantok.config.loader import load_model_config, load_settings, read_raw_model_config
from mariantok.config.schema import MarianConfig, TokenizerSettings, normalize_config
from mariantok.logging.logger import configure_logging, get_logger
from mariantok.tokenizer.exceptions import IntegrityError
from mariantok.tokenizer.facade.core import MarianTokenizer
from mariantok.tokenizer.segmenter.base import SegmenterAdapter
from mariantok.tokenizer.segmenter.fused import FusedSegmenter
from mariantok.tokenizer.segmenter.split import SentencePieceSegmenter
from mariantok.tokenizer.vocab.core import VocabularyTable
from mariantok.utils.hashing import read_checksum_file, verify_checksum

logger: logging.Logger = get_logger(__name__)

SETTINGS_FILENAME = "tokenizer.yaml"
CHECKSUM_FILENAME = "checksum.txt"


def resolve_backend(model_dir: Path, settings: TokenizerSettings) -> str:
    """
    Decide which backend a directory needs.

    An explicit setting always wins. With "auto", a directory that has
    tokenizer.json but no source.spm is fused; everything else is treated as
    the split SentencePiece layout.
    """
    if settings.backend != "auto":
        return settings.backend

    has_source_model = (model_dir / settings.source_model).is_file()
    has_tokenizer_file = (model_dir / settings.tokenizer_file).is_file()
    if has_tokenizer_file and not has_source_model:
        return "fused"
    return "sentencepiece"


def verify_model_checksums(model_dir: Path) -> int:
    """
    Check every file listed in checksum.txt against its SHA256.

    Returns the number of files verified (0 when there's no checksum.txt).

    Raises:
        IntegrityError: Unreadable checksum file, a listed file is missing,
                        or a hash doesn't match.
    """
    checksum_path = model_dir / CHECKSUM_FILENAME
    if not checksum_path.is_file():
        logger.warning(
            "No checksum.txt in model directory — skipping verification",
            extra={"model_dir": str(model_dir)},
        )
        return 0

    try:
        entries = read_checksum_file(checksum_path)
    except (OSError, ValueError) as err:
        raise IntegrityError(f"Cannot read {checksum_path}: {err}") from err

    for filename, expected_hash in sorted(entries.items()):
        artifact = model_dir / filename
        if not artifact.is_file():
            raise IntegrityError(f"File listed in checksum.txt is missing: {artifact}")
        if not verify_checksum(artifact, expected_hash):
            raise IntegrityError(
                f"Checksum mismatch for {artifact}. The file may be corrupted."
            )

    logger.info(
        "Model checksums verified",
        extra={"model_dir": str(model_dir), "file_count": len(entries)},
    )
    return len(entries)


def _open_split(
    model_dir: Path, settings: TokenizerSettings
) -> tuple[MarianConfig, SegmenterAdapter]:
    config = load_model_config(model_dir / settings.config_file)
    vocabulary = VocabularyTable.from_file(model_dir / settings.vocab_file)

    target_path: Optional[Path] = model_dir / settings.target_model
    if not target_path.is_file():
        target_path = None

    segmenter = SentencePieceSegmenter.from_files(
        model_dir / settings.source_model,
        vocabulary,
        target_path,
    )
    return config, segmenter


def _open_fused(
    model_dir: Path, settings: TokenizerSettings
) -> tuple[MarianConfig, SegmenterAdapter]:
    segmenter = FusedSegmenter.from_file(model_dir / settings.tokenizer_file)
    try:
        config_path = model_dir / settings.config_file
        raw = read_raw_model_config(config_path) if config_path.is_file() else {}
        # Values read from the loaded model take precedence over config.json.
        raw.update(segmenter.config_overrides())
        config = normalize_config(raw)
    except BaseException:
        segmenter.close()
        raise
    return config, segmenter


def open_tokenizer(
    model_dir: Union[str, Path],
    settings: Optional[TokenizerSettings] = None,
) -> MarianTokenizer:
    """
    Open a model directory and return a ready-to-use tokenizer.

    Args:
        model_dir: Directory holding the model artifacts.
        settings: Runtime settings. When omitted, tokenizer.yaml in the model
                  directory is used if present, otherwise defaults.

    Returns:
        An open MarianTokenizer. Close it (or use it as a context manager)
        when you're done.

    Raises:
        ConfigError: Missing or malformed config.json / tokenizer.yaml.
        VocabLoadError: Missing or malformed vocab.json.
        SegmentationError: Missing or unloadable segmentation model.
        IntegrityError: checksum.txt verification failed.
    """
    model_dir = Path(model_dir)
    if not model_dir.is_dir():
        raise ConfigLoadError(f"Model directory not found: {model_dir}")

    if settings is None:
        settings_path = model_dir / SETTINGS_FILENAME
        settings = load_settings(settings_path) if settings_path.is_file() else TokenizerSettings()

    log_file = Path(settings.log_file) if settings.log_file else None
    configure_logging(settings.log_level, log_file)

    if settings.verify_checksums:
        verify_model_checksums(model_dir)

    backend = resolve_backend(model_dir, settings)
    if backend == "fused":
        config, segmenter = _open_fused(model_dir, settings)
    else:
        config, segmenter = _open_split(model_dir, settings)

    try:
        tokenizer = MarianTokenizer(config, segmenter, settings)
    except BaseException:
        segmenter.close()
        raise

    logger.info(
        "Tokenizer opened",
        extra={
            "model_dir": str(model_dir),
            "backend": backend,
            "vocab_size": config.vocab_size,
            "model_max_length": config.model_max_length,
            "unk_id": tokenizer.unk_id,
        },
    )
    return tokenizer
