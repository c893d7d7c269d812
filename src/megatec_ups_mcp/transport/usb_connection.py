"""USB connection to a Megatec UPS speaking over string descriptors.

The UPS presents as a HID-class device, but the Megatec exchange never
touches its interrupt endpoints: each command is a standard
GET_DESCRIPTOR(STRING) control request on endpoint 0, and the reply is the
string descriptor's payload. No interface needs to be claimed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import usb.core
import usb.util

from ..errors import DeviceNotFoundError, InvalidResponseError

logger = logging.getLogger(__name__)

VENDOR_ID = 0x0001
PRODUCT_ID = 0x0000
CONTROL_TIMEOUT_MS = 1000

GET_DESCRIPTOR = 0x06
DESC_TYPE_STRING = usb.util.DESC_TYPE_STRING
REQUEST_TYPE_IN = usb.util.build_request_type(
    usb.util.CTRL_IN,
    usb.util.CTRL_TYPE_STANDARD,
    usb.util.CTRL_RECIPIENT_DEVICE,
)

# bLength + bDescriptorType + at least one payload byte
MIN_DESCRIPTOR_LENGTH = 3


@dataclass
class DeviceInfo:
    """Basic device identification from USB descriptors."""

    vendor_id: int = VENDOR_ID
    product_id: int = PRODUCT_ID
    manufacturer: str = ""
    product: str = ""
    path: str = ""


class USBConnection:
    """Owns the USB handle of one UPS.

    Usage::

        with USBConnection(vendor_id, product_id) as conn:
            data = conn.read_descriptor(3, 256)

    The handle is released when the ``with`` block exits, whether or not
    an exception was raised.
    """

    def __init__(
        self,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._device = None
        self._connected = False
        self._device_info = DeviceInfo(vendor_id=vendor_id, product_id=product_id)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def __enter__(self) -> USBConnection:
        if not self._connected:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def open(self) -> DeviceInfo:
        """Find and open the UPS.

        Returns:
            DeviceInfo with USB descriptor information.

        Raises:
            DeviceNotFoundError: If no device matches the vendor/product pair.
        """
        dev = usb.core.find(idVendor=self._vendor_id, idProduct=self._product_id)
        if dev is None:
            raise DeviceNotFoundError(
                f"No UPS found at {self._vendor_id:#06x}:{self._product_id:#06x}. "
                f"Ensure the device is connected and you have permissions."
            )

        # get_string opens the libusb handle; release it if anything below fails
        try:
            device_info = DeviceInfo(
                vendor_id=self._vendor_id,
                product_id=self._product_id,
                manufacturer=self._lookup_string(dev, dev.iManufacturer),
                product=self._lookup_string(dev, dev.iProduct),
                path=f"{dev.bus}:{dev.address}",
            )
        except BaseException:
            usb.util.dispose_resources(dev)
            raise

        self._device = dev
        self._device_info = device_info
        self._connected = True

        logger.info(
            "Connected via pyusb: %s %s",
            self._device_info.manufacturer,
            self._device_info.product,
        )
        return self._device_info

    @staticmethod
    def _lookup_string(dev, index: int) -> str:
        """Read a standard string descriptor, or "" if the device refuses."""
        if not index:
            return ""
        try:
            return usb.util.get_string(dev, index) or ""
        except (usb.core.USBError, ValueError) as e:
            logger.debug("String descriptor %d unavailable: %s", index, e)
            return ""

    def close(self) -> None:
        """Release the USB handle."""
        if not self._connected:
            return

        try:
            usb.util.dispose_resources(self._device)
        except usb.core.USBError as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._device = None
            self._connected = False
            logger.info("Disconnected")

    def read_descriptor(self, index: int, max_length: int) -> bytes:
        """Request a string descriptor and return its raw bytes.

        Sends GET_DESCRIPTOR with ``wValue = (STRING << 8) | index``,
        ``wIndex = 0`` and ``wLength = max_length``.

        ``max_length`` is not always a buffer size. For the timed self-test
        the firmware reads the test duration out of ``wLength``, so callers
        pass an encoded time code here. Do not clamp or round it.

        Args:
            index: Descriptor index selecting the command (0-255).
            max_length: Requested length (0-65535).

        Returns:
            The bytes actually transferred, header included.

        Raises:
            ConnectionError: If not connected.
            InvalidResponseError: If fewer than 3 bytes came back.
            usb.core.USBError: On any transfer failure (timeout, stall,
                disconnect, permissions).
        """
        if not self._connected:
            raise ConnectionError("Not connected to device")
        if not 0 <= index <= 0xFF:
            raise ValueError(f"Descriptor index must be 0-255, got {index}")
        if not 0 <= max_length <= 0xFFFF:
            raise ValueError(f"Descriptor length must be 0-65535, got {max_length}")

        data = self._device.ctrl_transfer(
            REQUEST_TYPE_IN,
            GET_DESCRIPTOR,
            (DESC_TYPE_STRING << 8) | index,
            0,
            max_length,
            timeout=CONTROL_TIMEOUT_MS,
        )
        data = bytes(data)
        logger.debug(
            "Descriptor %d (len %d) -> %d bytes: %s",
            index,
            max_length,
            len(data),
            data.hex(" ") if data else "(empty)",
        )

        if len(data) < MIN_DESCRIPTOR_LENGTH:
            raise InvalidResponseError(
                f"Descriptor {index} returned {len(data)} bytes, "
                f"need at least {MIN_DESCRIPTOR_LENGTH}"
            )
        return data
