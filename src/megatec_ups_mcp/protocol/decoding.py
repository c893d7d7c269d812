"""Decoder for USB string-descriptor payloads carrying Megatec text.

Descriptor layout::

    +---------+-----------------+-----------------------------+
    | bLength | bDescriptorType |          Payload            |
    | 1 byte  | 1 byte (0x03)   |  bLength - 2 bytes          |
    +---------+-----------------+-----------------------------+

- The two header bytes are never treated as text.
- The payload is nominally UTF-16LE; the device only puts ASCII in it, so
  the interleaved zero bytes fall out of the character filter.
- ``"``, backtick and ``(`` are device noise (the status line arrives as
  ``(230.0 ...``) and are dropped along with everything non-printable.
"""

from __future__ import annotations

DESCRIPTOR_HEADER_SIZE = 2

ASCII_MIN = 32
ASCII_MAX = 126
CHAR_QUOTE = 34
CHAR_PAREN = 40
CHAR_BACKTICK = 96

EXCLUDED_CHARS = frozenset({CHAR_QUOTE, CHAR_PAREN, CHAR_BACKTICK})


def is_protocol_char(byte: int) -> bool:
    """Return True if ``byte`` is printable ASCII and not a noise character."""
    return ASCII_MIN <= byte <= ASCII_MAX and byte not in EXCLUDED_CHARS


def decode_descriptor(data: bytes) -> str:
    """Decode a raw string descriptor into compacted protocol text.

    Args:
        data: Bytes returned by a GET_DESCRIPTOR(STRING) request,
            header included.

    Returns:
        The payload characters that pass :func:`is_protocol_char`, in
        their original order. Rejected bytes are dropped, not replaced.
    """
    payload = data[DESCRIPTOR_HEADER_SIZE:]
    return "".join(chr(b) for b in payload if is_protocol_char(b))
