"""Exceptions raised by the Megatec UPS client.

Transport failures are not wrapped: ``usb.core.USBError`` (and its
``USBTimeoutError`` subclass) propagate to the caller unchanged.
"""

from __future__ import annotations


class UPSError(Exception):
    """Base class for protocol-level UPS failures."""


class InvalidResponseError(UPSError):
    """The device returned too little data or an unparsable payload."""


class DeviceNotFoundError(InvalidResponseError):
    """No USB device matched the requested vendor/product pair."""


class InvalidTimeError(UPSError, ValueError):
    """A test duration outside 1-99 minutes was requested."""
