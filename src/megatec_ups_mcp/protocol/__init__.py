"""Protocol layer: command table, descriptor decoding, and response parsing."""

from .decoding import decode_descriptor, is_protocol_char
from .commands import Command, descriptor_request, encode_test_time
from .parser import parse_status
