"""Megatec UPS control over USB string descriptors, with an MCP server."""

from .errors import (
    DeviceNotFoundError,
    InvalidResponseError,
    InvalidTimeError,
    UPSError,
)
from .models.status import UPSStatus
from .ups import MegatecUPS

__version__ = "0.1.0"
