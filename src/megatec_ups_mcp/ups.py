"""High-level command interface for a Megatec UPS."""

from __future__ import annotations

import logging
import time

from .models.status import UPSStatus
from .protocol.commands import Command, descriptor_request
from .protocol.decoding import decode_descriptor
from .protocol.parser import parse_status
from .transport.usb_connection import PRODUCT_ID, VENDOR_ID, USBConnection

logger = logging.getLogger(__name__)

# Firmware refresh latency between the acknowledgment read and the real one
STATUS_ACK_DELAY = 1.0


class MegatecUPS:
    """Issues Megatec commands to a UPS over an open :class:`USBConnection`.

    Usage::

        with MegatecUPS.open(0x0001, 0x0000) as ups:
            print(ups.get_name())
            print(ups.get_status())

    Not safe for concurrent use: one caller owns the connection.
    Errors are never retried here. ``InvalidResponseError`` may be transient
    (the device was mid-refresh) and the whole call can simply be repeated.
    """

    def __init__(self, connection: USBConnection) -> None:
        self._connection = connection

    @classmethod
    def open(
        cls,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
    ) -> MegatecUPS:
        """Open the UPS matching ``vendor_id``/``product_id``.

        Raises:
            DeviceNotFoundError: If no such device is attached.
        """
        connection = USBConnection(vendor_id, product_id)
        try:
            connection.open()
        except BaseException:
            connection.close()
            raise
        return cls(connection)

    @property
    def connection(self) -> USBConnection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> MegatecUPS:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _request(self, command: Command, minutes: int | None = None) -> bytes:
        index, length = descriptor_request(command, minutes)
        logger.debug("%s -> descriptor %d, length %d", command.name, index, length)
        return self._connection.read_descriptor(index, length)

    def _request_text(self, command: Command) -> str:
        return decode_descriptor(self._request(command))

    # ─── QUERIES ──────────────────────────────────────────────────────

    def get_name(self) -> str:
        """Return the UPS identification string."""
        return self._request_text(Command.GET_NAME)

    def get_rating(self) -> str:
        """Return the UPS rating information as text."""
        return self._request_text(Command.GET_RATING)

    def get_status(self) -> UPSStatus:
        """Read the status using the two-phase acknowledgment handshake.

        The first read only primes the device; its reply is discarded.
        After :data:`STATUS_ACK_DELAY` seconds the second read returns the
        settled status line.
        """
        self._request(Command.GET_STATUS)
        logger.debug("Status acknowledged, waiting %.1fs", STATUS_ACK_DELAY)
        time.sleep(STATUS_ACK_DELAY)
        return parse_status(self._request_text(Command.GET_STATUS))

    def get_status_no_ack(self) -> UPSStatus:
        """Read the status with a single request.

        Faster than :meth:`get_status` but may return stale data.
        """
        return parse_status(self._request_text(Command.GET_STATUS_NO_ACK))

    # ─── CONTROL ──────────────────────────────────────────────────────

    def test(self) -> None:
        """Run a 10-second battery self-test."""
        self._request(Command.TEST)

    def test_until_battery_low(self) -> None:
        """Run a self-test until the battery reports low."""
        self._request(Command.TEST_UNTIL_BATTERY_LOW)

    def test_with_time(self, minutes: int) -> None:
        """Run a self-test for ``minutes`` (1-99).

        Raises:
            InvalidTimeError: If ``minutes`` is out of range. Nothing is
                sent to the device in that case.
        """
        self._request(Command.TEST_WITH_TIME, minutes)

    def switch_beep(self) -> None:
        """Toggle the UPS beeper."""
        self._request(Command.SWITCH_BEEP)

    def abort_test(self) -> None:
        """Cancel a running self-test."""
        self._request(Command.ABORT_TEST)

    def shutdown(self) -> None:
        """Shut the UPS down after one minute."""
        self._request(Command.SHUTDOWN)
