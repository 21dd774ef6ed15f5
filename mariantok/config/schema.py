# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for mariantok.

Two frozen pydantic models live here:

  - MarianConfig: the model configuration that ships next to a trained
    translation model (config.json). It tells us the special token ids,
    the vocabulary sizes and how long a source sequence may get. We only
    read the handful of keys the tokenizer needs and ignore the rest of the
    (very large) HuggingFace config.
  - TokenizerSettings: runtime knobs for how a model directory is opened —
    which segmentation backend to use, where the UNK id comes from, whether
    to verify checksums, logging. Loaded from YAML.

Frozen means once you create it, you cannot mutate it. The tokenizer hands
the same MarianConfig instance to every caller, so mutation would be a bug.
"""

from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mariantok.config.exceptions import ConfigValidationError

DEFAULT_MODEL_MAX_LENGTH = 512


class MarianConfig(BaseModel):
    """
    The slice of a Marian model's config.json that drives tokenization.

    Every integer defaults to 0, which is how the model export leaves fields
    it doesn't know about. Zero is meaningful for some of them (eos_token_id
    is usually 0 for Marian models), so normalization only fills in the
    three fields that have a well-defined fallback. See normalize_config().
    """

    model_config = ConfigDict(frozen=True, extra="ignore", validate_default=True)

    vocab_size: int = Field(default=0, description="Encoder vocabulary size")
    decoder_vocab_size: int = Field(
        default=0,
        description="Decoder vocabulary size; 0 means 'same as vocab_size'",
    )
    eos_token_id: int = Field(default=0, description="End-of-sequence token id")
    bos_token_id: int = Field(
        default=0,
        description="Beginning-of-sequence token id; 0 means 'same as eos_token_id'",
    )
    pad_token_id: int = Field(default=0, description="Padding token id used by batch assembly")
    decoder_start_token_id: int = Field(
        default=0,
        description="First token fed to the decoder during generation",
    )
    max_length: int = Field(default=0, description="Generation max length")
    model_max_length: int = Field(
        default=0,
        description="Longest source sequence the model accepts, EOS included",
    )
    bad_words_ids: list[list[int]] = Field(
        default_factory=list,
        description="Id sequences the decoder must never generate",
    )

    @field_validator(
        "vocab_size",
        "decoder_vocab_size",
        "eos_token_id",
        "bos_token_id",
        "pad_token_id",
        "decoder_start_token_id",
        "max_length",
        "model_max_length",
        mode="before",
    )
    @classmethod
    def _null_int_is_absent(cls, value: Any) -> Any:
        # HF exports write `null` for fields they don't set.
        return 0 if value is None else value

    @field_validator("bad_words_ids", mode="before")
    @classmethod
    def _null_list_is_absent(cls, value: Any) -> Any:
        return [] if value is None else value


def normalize_config(raw: Union[MarianConfig, Mapping[str, Any]]) -> MarianConfig:
    """
    Apply the default rules to a raw model config and return a frozen result.

    The rules run in this exact order:
      (a) decoder_vocab_size == 0  ->  vocab_size
      (b) model_max_length == 0    ->  max_length if max_length > 0, else 512
      (c) bos_token_id == 0        ->  eos_token_id

    Nothing else gets defaulted. Running this on an already-normalized config
    returns an equal config, so it's safe to call at every boundary.

    Args:
        raw: Either a MarianConfig or the parsed config.json mapping.

    Returns:
        A normalized, frozen MarianConfig.

    Raises:
        ConfigValidationError: If the mapping can't be coerced into a MarianConfig.
    """
    if isinstance(raw, MarianConfig):
        config = raw
    else:
        if not isinstance(raw, Mapping):
            raise ConfigValidationError(
                f"Model config must be a mapping (dict), got {type(raw).__name__}"
            )
        try:
            config = MarianConfig.model_validate(dict(raw))
        except ValidationError as err:
            raise ConfigValidationError(f"Model config validation failed:\n{err}") from err

    updates: dict[str, int] = {}

    decoder_vocab_size = config.decoder_vocab_size
    if decoder_vocab_size == 0:
        decoder_vocab_size = config.vocab_size
        updates["decoder_vocab_size"] = decoder_vocab_size

    if config.model_max_length == 0:
        if config.max_length > 0:
            updates["model_max_length"] = config.max_length
        else:
            updates["model_max_length"] = DEFAULT_MODEL_MAX_LENGTH

    if config.bos_token_id == 0:
        updates["bos_token_id"] = config.eos_token_id

    if not updates:
        return config
    return config.model_copy(update=updates)


class TokenizerSettings(BaseModel):
    """
    How to open a model directory. Maps to an optional tokenizer.yaml.

    Everything has a sensible default, so an empty YAML file (or no file at
    all) gives you the standard Marian layout with backend auto-detection.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    backend: Literal["auto", "sentencepiece", "fused"] = Field(
        default="auto",
        description=(
            "'sentencepiece' = split backend (source.spm/target.spm + vocab.json), "
            "'fused' = tokenizer.json, 'auto' = pick from the directory contents"
        ),
    )
    unk_source: Literal["vocab", "backend"] = Field(
        default="vocab",
        description=(
            "Where the UNK id used for decode-time filtering comes from: the "
            "vocabulary's <unk> entry, or the id the segmentation backend reports"
        ),
    )
    config_file: str = Field(default="config.json", description="Model config file name")
    vocab_file: str = Field(default="vocab.json", description="Task vocabulary file name")
    source_model: str = Field(
        default="source.spm",
        description="SentencePiece model used to segment source text",
    )
    target_model: str = Field(
        default="target.spm",
        description="SentencePiece model used to detokenize; falls back to source_model",
    )
    tokenizer_file: str = Field(
        default="tokenizer.json",
        description="Serialized HuggingFace tokenizer for the fused backend",
    )
    max_decode_bytes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Hard bound on decoded UTF-8 output; None means unbounded",
    )
    verify_checksums: bool = Field(
        default=True,
        description="Verify checksum.txt entries when the model directory has one",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )
