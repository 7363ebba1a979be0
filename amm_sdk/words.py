"""
AMM Intent SDK - Word Codec

A word is a signed 64-bit integer. On the wire and under the hash it is
serialised as 8 big-endian bytes in two's complement.
"""

import hashlib
import struct
from typing import Iterable, List

WORD_SIZE = 8
WORD_MIN = -(2 ** 63)
WORD_MAX = 2 ** 63 - 1


def is_word(value) -> bool:
    """Check that value is an int (not bool) inside the word range."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return WORD_MIN <= value <= WORD_MAX


def word_to_bytes(word: int) -> bytes:
    if not is_word(word):
        raise ValueError(f"Not a 64-bit word: {word!r}")
    return struct.pack(">q", word)


def words_to_bytes(words: Iterable[int]) -> bytes:
    return b"".join(word_to_bytes(w) for w in words)


def words_from_bytes(data: bytes) -> List[int]:
    """
    Reinterpret bytes as big-endian signed words.

    Raises:
        ValueError: If len(data) is not a multiple of 8
    """
    if len(data) % WORD_SIZE:
        raise ValueError(f"Expected a multiple of {WORD_SIZE} bytes, got {len(data)}")
    count = len(data) // WORD_SIZE
    return list(struct.unpack(f">{count}q", data))


def words_to_hex(words: Iterable[int]) -> str:
    """Upper-case hex of the serialised words (the node's key format)."""
    return words_to_bytes(words).hex().upper()


def words_from_hex(value: str) -> List[int]:
    return words_from_bytes(bytes.fromhex(value))


def hash_words(words: Iterable[int]) -> bytes:
    """SHA-256 over the serialised words. This digest is what gets signed."""
    return hashlib.sha256(words_to_bytes(words)).digest()
