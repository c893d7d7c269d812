"""Tests for descriptor character filtering and decoding."""

from megatec_ups_mcp.protocol.decoding import decode_descriptor, is_protocol_char


def _utf16_descriptor(text: str) -> bytes:
    """Build a string descriptor the way the device sends it."""
    payload = text.encode("utf-16-le")
    return bytes([len(payload) + 2, 0x03]) + payload


def test_noise_characters_dropped():
    assert not is_protocol_char(34)  # "
    assert not is_protocol_char(96)  # `
    assert not is_protocol_char(40)  # (


def test_range_limits():
    assert not is_protocol_char(31)
    assert not is_protocol_char(127)
    assert is_protocol_char(32)
    assert is_protocol_char(126)
    assert is_protocol_char(65)


def test_closing_paren_kept():
    assert is_protocol_char(ord(")"))


def test_decode_skips_header():
    """Header bytes are never text, even when they look printable."""
    data = bytes([0x41, 0x42]) + b"OK"
    assert decode_descriptor(data) == "OK"


def test_decode_utf16_payload():
    data = _utf16_descriptor("(230.0 195.0 230.0 50 50.0 13.6 35.0")
    assert decode_descriptor(data) == "230.0 195.0 230.0 50 50.0 13.6 35.0"


def test_decode_compacts_in_order():
    data = b"\x0a\x03" + b'A"B`C(D\x00\xffE'
    assert decode_descriptor(data) == "ABCDE"


def test_decode_header_only():
    assert decode_descriptor(b"\x02\x03") == ""
