"""Response parsing for decoded descriptor text."""

from __future__ import annotations

import logging

from ..errors import InvalidResponseError
from ..models.status import UPSStatus

logger = logging.getLogger(__name__)


def parse_status(text: str) -> UPSStatus:
    """Parse a decoded status line into a :class:`UPSStatus`.

    The line is split on runs of whitespace and the first seven tokens are
    read as floats, in the order input voltage, input fault voltage, output
    voltage, output current, input frequency, battery voltage, temperature.
    Anything after the seventh token (e.g. the status bit field) is ignored.

    Raises:
        InvalidResponseError: If fewer than seven tokens are present or any
            of them is not a number. No partial record is returned.
    """
    tokens = text.split()[: UPSStatus.FIELD_COUNT]

    values: list[float] = []
    for token in tokens:
        try:
            # float() accepts "2_30.0"; the device grammar has no digit separators
            if "_" in token:
                raise ValueError(f"digit separator in {token!r}")
            values.append(float(token))
        except ValueError as e:
            raise InvalidResponseError(
                f"Non-numeric status field {token!r} in {text!r}"
            ) from e

    if len(values) != UPSStatus.FIELD_COUNT:
        raise InvalidResponseError(
            f"Status line has {len(values)} fields, expected "
            f"{UPSStatus.FIELD_COUNT}: {text!r}"
        )

    status = UPSStatus.from_values(values)
    logger.debug("Parsed status: %s", status)
    return status
