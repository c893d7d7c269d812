"""Tests for the MegatecUPS command layer over a mocked connection."""

from __future__ import annotations

from unittest.mock import MagicMock, call, patch

import pytest
import usb.core

from megatec_ups_mcp.errors import InvalidResponseError, InvalidTimeError
from megatec_ups_mcp.ups import STATUS_ACK_DELAY, MegatecUPS


def _descriptor(text: str) -> bytes:
    payload = text.encode("utf-16-le")
    return bytes([len(payload) + 2, 0x03]) + payload


STATUS_REPLY = _descriptor("(230.0 195.0 230.0 50 50.0 13.6 35.0 00001001")


@pytest.fixture
def conn():
    connection = MagicMock()
    connection.read_descriptor.return_value = STATUS_REPLY
    return connection


@pytest.fixture
def sleep():
    with patch("megatec_ups_mcp.ups.time.sleep") as mock_sleep:
        yield mock_sleep


def test_get_status_two_reads_with_delay(conn, sleep):
    events = MagicMock()
    events.attach_mock(conn.read_descriptor, "read")
    events.attach_mock(sleep, "sleep")

    status = MegatecUPS(conn).get_status()

    assert events.mock_calls == [
        call.read(3, 256),
        call.sleep(STATUS_ACK_DELAY),
        call.read(3, 256),
    ]
    assert STATUS_ACK_DELAY >= 1.0
    assert status.input_voltage == 230.0
    assert status.temperature == 35.0


def test_get_status_parses_second_reply(conn, sleep):
    conn.read_descriptor.side_effect = [
        _descriptor("garbage"),
        _descriptor("(231.5 190.0 229.0 12 49.9 27.2 30.5"),
    ]
    status = MegatecUPS(conn).get_status()
    assert status.input_voltage == 231.5
    assert status.battery_voltage == 27.2


def test_get_status_no_ack_single_read(conn, sleep):
    status = MegatecUPS(conn).get_status_no_ack()
    conn.read_descriptor.assert_called_once_with(3, 256)
    sleep.assert_not_called()
    assert status.output_current == 50.0


def test_get_status_invalid_reply(conn, sleep):
    conn.read_descriptor.return_value = _descriptor("(230.0 195.0")
    with pytest.raises(InvalidResponseError):
        MegatecUPS(conn).get_status_no_ack()


def test_get_name(conn):
    conn.read_descriptor.return_value = _descriptor('"MEC0003`')
    assert MegatecUPS(conn).get_name() == "MEC0003"
    conn.read_descriptor.assert_called_once_with(2, 256)


def test_get_rating(conn):
    conn.read_descriptor.return_value = _descriptor("#230.0 003 12.00 50.0")
    assert MegatecUPS(conn).get_rating() == "#230.0 003 12.00 50.0"
    conn.read_descriptor.assert_called_once_with(13, 256)


@pytest.mark.parametrize(
    "method, expected",
    [
        ("test", (4, 256)),
        ("test_until_battery_low", (5, 256)),
        ("switch_beep", (7, 256)),
        ("abort_test", (11, 256)),
        ("shutdown", (105, 2460)),
    ],
)
def test_control_commands(conn, method, expected):
    assert getattr(MegatecUPS(conn), method)() is None
    conn.read_descriptor.assert_called_once_with(*expected)


def test_test_with_time_sends_time_code(conn):
    MegatecUPS(conn).test_with_time(10)
    conn.read_descriptor.assert_called_once_with(6, 116)


@pytest.mark.parametrize("minutes", [0, 100])
def test_test_with_time_rejects_before_sending(conn, minutes):
    with pytest.raises(InvalidTimeError):
        MegatecUPS(conn).test_with_time(minutes)
    conn.read_descriptor.assert_not_called()


def test_transport_error_aborts_handshake(conn, sleep):
    conn.read_descriptor.side_effect = usb.core.USBError("stall")
    with pytest.raises(usb.core.USBError):
        MegatecUPS(conn).get_status()
    assert conn.read_descriptor.call_count == 1
    sleep.assert_not_called()


def test_context_manager_closes(conn):
    with MegatecUPS(conn) as ups:
        assert ups.connection is conn
    conn.close.assert_called_once()


def test_open_builds_connection():
    with patch("megatec_ups_mcp.ups.USBConnection") as conn_cls:
        ups = MegatecUPS.open(0x0665, 0x5161)
    conn_cls.assert_called_once_with(0x0665, 0x5161)
    conn_cls.return_value.open.assert_called_once()
    assert ups.connection is conn_cls.return_value


def test_open_failure_leaves_nothing_open():
    with patch("megatec_ups_mcp.ups.USBConnection") as conn_cls:
        conn_cls.return_value.open.side_effect = NotImplementedError("not supported")
        with pytest.raises(NotImplementedError):
            MegatecUPS.open()
    conn_cls.return_value.close.assert_called_once()


def test_test_with_time_rejects_fractional_minutes(conn):
    with pytest.raises(InvalidTimeError):
        MegatecUPS(conn).test_with_time(5.5)
    conn.read_descriptor.assert_not_called()
