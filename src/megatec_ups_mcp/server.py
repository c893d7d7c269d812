"""MCP server entry point for Megatec USB UPS devices.

Exposes tools and resources via the Model Context Protocol using the
official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import usb.core
from mcp.server.fastmcp import FastMCP

from .errors import UPSError
from .transport.usb_connection import PRODUCT_ID, VENDOR_ID
from .ups import MegatecUPS

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "megatec-ups",
    instructions="MCP server for UPS devices speaking the Megatec protocol over USB",
)

# Global connection state
_ups: MegatecUPS | None = None


def _get_ups() -> MegatecUPS:
    """Get the active UPS, raising if not connected."""
    if _ups is None or not _ups.connection.connected:
        raise RuntimeError(
            "Not connected to device. Use the 'connect' tool first."
        )
    return _ups


def _run(action: Callable[[MegatecUPS], Any]) -> tuple[Any, dict[str, Any] | None]:
    """Run ``action`` against the UPS, turning device failures into an error dict."""
    ups = _get_ups()
    try:
        return action(ups), None
    except (UPSError, usb.core.USBError) as e:
        logger.warning("UPS command failed: %s", e)
        return None, {"error": str(e)}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(vendor_id: int = VENDOR_ID, product_id: int = PRODUCT_ID) -> dict[str, Any]:
    """Open the USB connection to the UPS.

    Args:
        vendor_id: USB vendor ID (default 0x0001).
        product_id: USB product ID (default 0x0000).
    """
    global _ups
    if _ups is not None and _ups.connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "product": _ups.connection.device_info.product,
        }

    try:
        _ups = MegatecUPS.open(vendor_id, product_id)
    except (UPSError, usb.core.USBError) as e:
        return {"connected": False, "error": str(e)}

    info = _ups.connection.device_info
    return {
        "connected": True,
        "manufacturer": info.manufacturer,
        "product": info.product,
        "vendor_id": f"0x{info.vendor_id:04X}",
        "product_id": f"0x{info.product_id:04X}",
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the USB connection to the UPS."""
    global _ups
    if _ups is None:
        return {"disconnected": True}
    _ups.close()
    _ups = None
    return {"disconnected": True}


# ─── QUERY TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def get_name() -> dict[str, Any]:
    """Read the UPS identification string."""
    name, error = _run(lambda ups: ups.get_name())
    return error or {"name": name}


@mcp.tool()
def get_status(acknowledge: bool = True) -> dict[str, Any]:
    """Read input/output voltages, load, frequency, battery and temperature.

    Args:
        acknowledge: Use the two-phase handshake (about one second slower,
            but always fresh). Set False for a single, possibly stale read.
    """
    if acknowledge:
        status, error = _run(lambda ups: ups.get_status())
    else:
        status, error = _run(lambda ups: ups.get_status_no_ack())
    return error or status.to_dict()


@mcp.tool()
def get_rating() -> dict[str, Any]:
    """Read the UPS rating information."""
    rating, error = _run(lambda ups: ups.get_rating())
    return error or {"rating": rating}


# ─── CONTROL TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def run_test() -> dict[str, Any]:
    """Run a 10-second battery self-test."""
    _, error = _run(lambda ups: ups.test())
    return error or {"success": True, "test": "10 seconds"}


@mcp.tool()
def run_test_until_battery_low() -> dict[str, Any]:
    """Run a battery self-test until the battery reports low."""
    _, error = _run(lambda ups: ups.test_until_battery_low())
    return error or {"success": True, "test": "until battery low"}


@mcp.tool()
def run_test_with_time(minutes: int) -> dict[str, Any]:
    """Run a battery self-test for a number of minutes.

    Args:
        minutes: Test duration, 1-99.
    """
    _, error = _run(lambda ups: ups.test_with_time(minutes))
    return error or {"success": True, "test": f"{minutes} minutes"}


@mcp.tool()
def abort_test() -> dict[str, Any]:
    """Cancel a running self-test."""
    _, error = _run(lambda ups: ups.abort_test())
    return error or {"success": True}


@mcp.tool()
def switch_beep() -> dict[str, Any]:
    """Toggle the UPS alarm beeper on or off."""
    _, error = _run(lambda ups: ups.switch_beep())
    return error or {"success": True}


@mcp.tool()
def shutdown() -> dict[str, Any]:
    """Shut the UPS output down after one minute.

    Equipment powered by the UPS will lose power.
    """
    _, error = _run(lambda ups: ups.shutdown())
    return error or {"success": True, "message": "UPS will shut down in 1 minute"}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("megatec://device/info")
def resource_device_info() -> str:
    """USB identification and connection state."""
    if _ups is None or not _ups.connection.connected:
        return json.dumps({"connected": False})

    info = _ups.connection.device_info
    return json.dumps({
        "connected": True,
        "manufacturer": info.manufacturer,
        "product": info.product,
        "vendor_id": f"0x{info.vendor_id:04X}",
        "product_id": f"0x{info.product_id:04X}",
        "path": info.path,
    })


@mcp.resource("megatec://device/status")
def resource_device_status() -> str:
    """Latest status read without the acknowledgment handshake."""
    if _ups is None or not _ups.connection.connected:
        return json.dumps({"connected": False})
    status, error = _run(lambda ups: ups.get_status_no_ack())
    return json.dumps(error or {"connected": True, **status.to_dict()})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
