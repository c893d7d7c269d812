"""Data models for UPS responses."""

from .status import UPSStatus
