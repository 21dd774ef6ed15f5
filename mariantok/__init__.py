# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
mariantok — text <-> token ids for MarianMT-style translation models.

Subsystems:
  - config: model config (config.json) and runtime settings (tokenizer.yaml)
  - tokenizer: vocabulary, segmenter adapters, encode/batch/decode pipelines,
    the MarianTokenizer facade and the model-directory loader
  - logging: structured JSON logging
  - utils: hashing and filesystem helpers
"""
