"""Command table mapping logical UPS operations to string descriptors.

Every Megatec command is issued by requesting a USB string descriptor:
the descriptor index selects the command, and the requested length is
normally just a buffer bound. TEST_WITH_TIME is the exception: the test
duration is encoded into the requested length itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import InvalidTimeError

DEFAULT_MAX_LENGTH = 256
SHUTDOWN_MAX_LENGTH = 2460

MIN_TEST_MINUTES = 1
MAX_TEST_MINUTES = 99


class Command(Enum):
    """Logical operations understood by the UPS."""

    GET_NAME = "get_name"
    GET_STATUS = "get_status"
    GET_STATUS_NO_ACK = "get_status_no_ack"
    TEST = "test"
    TEST_UNTIL_BATTERY_LOW = "test_until_battery_low"
    TEST_WITH_TIME = "test_with_time"
    SWITCH_BEEP = "switch_beep"
    ABORT_TEST = "abort_test"
    GET_RATING = "get_rating"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class DescriptorPlan:
    """Descriptor index and length requested for a command.

    ``max_length`` is None when the length is computed from the command's
    argument (see :func:`encode_test_time`).
    """

    index: int
    max_length: int | None = DEFAULT_MAX_LENGTH

    @property
    def computed_length(self) -> bool:
        return self.max_length is None


COMMAND_TABLE: dict[Command, DescriptorPlan] = {
    Command.GET_NAME: DescriptorPlan(2),
    Command.GET_STATUS: DescriptorPlan(3),
    Command.GET_STATUS_NO_ACK: DescriptorPlan(3),
    Command.TEST: DescriptorPlan(4),
    Command.TEST_UNTIL_BATTERY_LOW: DescriptorPlan(5),
    Command.TEST_WITH_TIME: DescriptorPlan(6, None),
    Command.SWITCH_BEEP: DescriptorPlan(7),
    Command.ABORT_TEST: DescriptorPlan(11),
    Command.GET_RATING: DescriptorPlan(13),
    # The shutdown acknowledgment comes back as one long combined blob.
    Command.SHUTDOWN: DescriptorPlan(105, SHUTDOWN_MAX_LENGTH),
}


def encode_test_time(minutes: int) -> int:
    """Encode a self-test duration as the firmware's time code.

    The mapping is piecewise and deliberately irregular; it mirrors what
    the firmware expects, so it must not be smoothed out:

    - 1-9 minutes: ``100 + minutes``
    - 10-19 minutes: ``125 + (minutes - 19)`` (decreasing towards 10)
    - 20-99 minutes: ``132 + (minutes - range_start) * 7`` where
      ``range_start`` is the start of the minute's decade

    Args:
        minutes: Test duration, 1-99.

    Raises:
        InvalidTimeError: If ``minutes`` is not an int in 1-99.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidTimeError(
            f"Test duration must be a whole number of minutes, got {minutes!r}"
        )
    if not MIN_TEST_MINUTES <= minutes <= MAX_TEST_MINUTES:
        raise InvalidTimeError(
            f"Test duration must be {MIN_TEST_MINUTES}-{MAX_TEST_MINUTES} "
            f"minutes, got {minutes}"
        )

    if minutes <= 9:
        return 100 + minutes
    if minutes <= 19:
        return 125 + (minutes - 19)
    range_start = ((minutes - 20) // 10) * 10 + 20
    return 132 + (minutes - range_start) * 7


def descriptor_request(
    command: Command, minutes: int | None = None
) -> tuple[int, int]:
    """Resolve a command to the (index, length) pair to request.

    Args:
        command: The logical command.
        minutes: Test duration, required for ``Command.TEST_WITH_TIME``
            and ignored otherwise.

    Raises:
        ValueError: If TEST_WITH_TIME is requested without ``minutes``.
        InvalidTimeError: If ``minutes`` is out of range.
    """
    plan = COMMAND_TABLE[command]
    if not plan.computed_length:
        return plan.index, plan.max_length

    if minutes is None:
        raise ValueError(f"{command.name} requires a duration in minutes")
    return plan.index, encode_test_time(minutes)
