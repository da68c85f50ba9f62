"""Text <-> numeric token codec for Scratch cloud variables.

Cloud variables only carry digits, so every character is sent as its
1-based position in ``ALL_CHARS``, zero-padded to two digits. The two
characters ``nw`` (the line-break marker the generator is told to use)
encode to ``4049``; that run is collapsed to the reserved token ``00``,
which decodes back to a real newline.

The collapse is a plain substring replacement over the whole encoded
string, so any ``n`` directly followed by ``w`` also turns into a newline
(``"knwo"`` decodes as ``"k\\no"``). Scratch projects already depend on
this behaviour.
"""

from __future__ import annotations

from scratchbridge.core.bridge.constants import (
    ALL_CHARS,
    DEFAULT_ENCODE_CHAR,
    INVALID_CHAR_PLACEHOLDER,
    NEWLINE_MARKER_TOKENS,
    NEWLINE_TOKEN,
    TOKEN_WIDTH,
)
from scratchbridge.core.bridge.runtime_shared import _loguru_logger

_CHAR_INDEX: dict[str, int] = {char: idx for idx, char in enumerate(ALL_CHARS)}


def encode_text(text: object, default_char: str = DEFAULT_ENCODE_CHAR) -> str:
    """Encode ``text`` into a string of two-digit tokens.

    Characters outside the alphabet are sent as ``default_char``, which must
    itself be transmissible.
    """
    if default_char not in _CHAR_INDEX:
        raise ValueError(f"default_char is not encodable: {default_char!r}")
    default_index = _CHAR_INDEX[default_char]
    tokens = [
        str(_CHAR_INDEX.get(char, default_index) + 1).zfill(TOKEN_WIDTH)
        for char in str(text)
    ]
    return "".join(tokens).replace(NEWLINE_MARKER_TOKENS, NEWLINE_TOKEN)


def decode_text(encoded: object, warnings: list[str] | None = None) -> str:
    """Decode a token string; never raises.

    A trailing odd digit is dropped. Tokens that do not map to a character
    become ``?`` and are appended to ``warnings`` when a list is given.
    """
    encoded_text = str(encoded)
    chars: list[str] = []
    for start in range(0, len(encoded_text) - len(encoded_text) % TOKEN_WIDTH, TOKEN_WIDTH):
        code = encoded_text[start : start + TOKEN_WIDTH]
        if code == NEWLINE_TOKEN:
            chars.append("\n")
            continue
        index = int(code) - 1 if code.isascii() and code.isdigit() else -1
        if 0 <= index < len(ALL_CHARS):
            chars.append(ALL_CHARS[index])
            continue
        _loguru_logger.warning(f"Invalid code: {code}")
        if warnings is not None:
            warnings.append(code)
        chars.append(INVALID_CHAR_PLACEHOLDER)
    return "".join(chars)


def is_encodable(text: object) -> bool:
    return all(char in _CHAR_INDEX for char in str(text))


__all__ = ["decode_text", "encode_text", "is_encodable"]
