"""Split encoded replies across the fixed set of response cloud variables."""

from __future__ import annotations

import math

from scratchbridge.core.bridge.codec import encode_text
from scratchbridge.core.bridge.constants import (
    CHUNK_VAR_TEMPLATE,
    EMPTY_SLOT_VALUE,
    MAX_CHUNK_CHARS,
    TOTAL_CHUNKS,
    TRUNCATION_NOTICE,
)


def chunk_var_name(slot_index: int) -> str:
    """Cloud variable name for a 0-based slot index."""
    return CHUNK_VAR_TEMPLATE.format(index=slot_index + 1)


def truncation_notice(max_chars: int = MAX_CHUNK_CHARS) -> str:
    return encode_text(TRUNCATION_NOTICE)[:max_chars]


def split_numeric_string_into_chunks(
    encoded: str,
    total_chunks: int = TOTAL_CHUNKS,
    max_chunk_chars: int = MAX_CHUNK_CHARS,
) -> list[str]:
    """Split ``encoded`` into ``total_chunks`` slots of equal width.

    Slots past the end of the payload are empty strings. When the payload is
    longer than ``total_chunks * max_chunk_chars`` the head is kept and the
    last slot carries the encoded truncation notice instead.
    """
    chunk_size = min(math.ceil(len(encoded) / total_chunks), max_chunk_chars)
    chunks = [encoded[i * chunk_size : (i + 1) * chunk_size] for i in range(total_chunks)]
    if len(encoded) > chunk_size * total_chunks:
        chunks[-1] = truncation_notice(max_chunk_chars)
    return chunks


def transmission_order(chunks: list[str]) -> list[tuple[str, str]]:
    """Return ``(variable, value)`` pairs from the last slot down to slot 1.

    The Scratch side treats a change of slot 1 as "reply complete", so it
    must be written last. Empty slots are sent as ``"0"``.
    """
    return [
        (chunk_var_name(idx), chunks[idx] or EMPTY_SLOT_VALUE)
        for idx in range(len(chunks) - 1, -1, -1)
    ]


__all__ = [
    "chunk_var_name",
    "split_numeric_string_into_chunks",
    "transmission_order",
    "truncation_notice",
]
