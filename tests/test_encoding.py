import base64

import pytest

from passes.encoding import decode_markup, encode_markup


def test_payload_is_ascii_and_reversible_for_non_ascii_markup():
    markup = '<blockquote class="twitter-tweet"><p>café — 🎉 "quoted"</p></blockquote>'
    payload = encode_markup(markup)
    assert payload.isascii()
    assert '"' not in payload and "<" not in payload
    assert decode_markup(payload) == markup


def test_payload_uses_utf8_bytes():
    assert encode_markup("é") == base64.b64encode("é".encode("utf-8")).decode("ascii")


def test_decode_rejects_invalid_base64():
    with pytest.raises(ValueError):
        decode_markup("not base64!!")


def test_decode_rejects_non_utf8_payload():
    payload = base64.b64encode(b"\xff\xfe\xfa").decode("ascii")
    with pytest.raises(ValueError):
        decode_markup(payload)
