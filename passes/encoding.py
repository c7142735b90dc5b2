"""Reversible encoding of markup fragments for HTML attribute embedding.

The payload is base64 of the UTF-8 bytes, which is attribute-safe without
any further escaping and is what the runtime script decodes with
``atob`` + ``TextDecoder("utf-8")``.
"""

from __future__ import annotations

import base64
import binascii

CHARSET = "utf-8"


def encode_markup(markup: str) -> str:
    """Encode *markup* into an ASCII base64 payload."""
    return base64.b64encode(markup.encode(CHARSET)).decode("ascii")


def decode_markup(payload: str) -> str:
    """Decode a payload produced by ``encode_markup``.

    Raises:
        ValueError: If the payload is not valid base64 or not UTF-8.
    """
    try:
        raw = base64.b64decode(payload.strip().encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError(f"invalid facade payload: {exc}") from exc
    try:
        return raw.decode(CHARSET)
    except UnicodeDecodeError as exc:
        raise ValueError(f"facade payload is not {CHARSET}: {exc}") from exc
