"""Transport layer: USB control transfers to the UPS."""

from .usb_connection import DeviceInfo, USBConnection
