# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing utilities for mariantok.

Model directories get copied around a lot (object stores, container images,
shared volumes). A truncated vocab.json or a half-written .spm file still
loads fine and then quietly produces wrong ids, so when a directory ships a
checksum.txt we verify every file it lists before loading anything.

checksum.txt uses the BSD convention: "<sha256>  <filename>" per line.
"""

import hashlib
from pathlib import Path

HASH_BUFFER_SIZE = 65536  # 64 KiB


def compute_sha256(file_path: Path) -> str:
    """
    Compute the SHA256 hex digest of a file, reading it in 64 KiB chunks.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(HASH_BUFFER_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def verify_checksum(file_path: Path, expected_hash: str) -> bool:
    """Check whether a file's SHA256 matches the expected (hex) hash."""
    actual_hash = compute_sha256(file_path)
    return actual_hash == expected_hash.strip().lower()


def read_checksum_file(checksum_path: Path) -> dict[str, str]:
    """
    Parse a checksum.txt into {filename: expected_hash}.

    Blank lines and lines starting with '#' are skipped. Lines that don't
    have the "hash  filename" shape raise ValueError — a checksum file we
    can't read is not something to quietly ignore.
    """
    entries: dict[str, str] = {}
    for line_no, raw_line in enumerate(
        checksum_path.read_text(encoding="utf-8").splitlines(), start=1
    ):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        parts = line.split(maxsplit=1)
        if len(parts) != 2:
            raise ValueError(f"{checksum_path}:{line_no}: expected '<sha256>  <filename>'")

        file_hash, filename = parts
        entries[filename.strip().lstrip("*")] = file_hash.lower()

    return entries
