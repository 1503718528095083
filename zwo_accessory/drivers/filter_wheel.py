"""
Driver for the ZWO EFW filter wheel.

Position report examples (bytes 0-15)::

    01 7e 5a 01 04 00 03 02 03 07 00 00 00 00 30 00   moving, mid-transition
    01 7e 5a 01 01 00 03 03 03 07 00 00 00 00 30 00   settled on slot 3
    01 7e 5a 01 06 0c 07 06 07 07 00 00 00 00 30 00   locked up

Byte 4 is the status, byte 5 an error code, bytes 6-8 the slot as seen by
three readings (only trusted when they agree) and byte 9 the slot count.
"""

import logging
from typing import Sequence

from zwo_accessory.drivers.base import FeatureReportDriver
from zwo_accessory.drivers.status import DeviceStatus
from zwo_accessory.protocol.commands import (
    EFW_CONSISTENCY_OFFSETS,
    EFW_ERROR_OFFSET,
    EFW_GET_INFO,
    EFW_GET_POSITION,
    EFW_MAX_SLOT_OFFSET,
    EFW_SET_POSITION,
    EFW_SLOT_COUNT,
    EFW_SLOT_OFFSET,
    EFW_STATUS_LOCKED,
    EFW_STATUS_OFFSET,
    EFW_STATUS_STABLE,
)
from zwo_accessory.utils.exceptions import DeviceFault, InvalidSlotError, TransportError


logger = logging.getLogger(__name__)


def classify_status(
    status: int,
    error_code: int,
    consistency: Sequence[int],
    slot_count: int = EFW_SLOT_COUNT,
) -> DeviceStatus:
    """
    Debounce a wheel position report.

    Settled only when all three slot readings agree and the status is
    stable; a single reading can be taken mid-transition.
    """
    first, second, third = consistency
    if first == second == third and status == EFW_STATUS_STABLE:
        return DeviceStatus.settled(first, slot_count)

    if status == EFW_STATUS_LOCKED or error_code != 0:
        return DeviceStatus.fatal(DeviceFault(
            f"wheel reported status={status} error=0x{error_code:02x}"
        ))

    return DeviceStatus.moving()


class FilterWheelDriver(FeatureReportDriver):
    """EFW info and get/set position commands."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._slot_count_warned = False

    def get_info(self) -> None:
        """
        Identity probe.

        A response that differs from the known 7-slot wheel is reported as
        a protocol anomaly and otherwise ignored.

        Raises:
            TransportError: If either transfer fails.
        """
        frame = self._request(EFW_GET_INFO)
        model = frame.raw[8:].split(b"\x00")[0].decode("ascii", errors="replace")
        logger.info(f"Wheel identity: {model}")

    def set_position(self, slot: int) -> None:
        """
        Request a slot. No response frame exists for this command.

        Raises:
            InvalidSlotError: If slot is outside 1-7 (nothing is sent).
            TransportError: If the send fails.
        """
        if slot < 1 or slot > EFW_SLOT_COUNT:
            raise InvalidSlotError(f"Slot must be 1-{EFW_SLOT_COUNT}, got {slot}")

        logger.debug(f"Requesting wheel slot {slot}")
        self._send(EFW_SET_POSITION, [(EFW_SLOT_OFFSET, bytes([slot]))])

    def get_position(self) -> DeviceStatus:
        """Query and debounce the wheel position."""
        try:
            frame = self._request(EFW_GET_POSITION)
        except TransportError as e:
            logger.error(f"Position query failed: {e}")
            return DeviceStatus.fatal(e)

        status = frame.byte(EFW_STATUS_OFFSET)
        error_code = frame.byte(EFW_ERROR_OFFSET)
        consistency = [frame.byte(offset) for offset in EFW_CONSISTENCY_OFFSETS]
        slot_count = frame.byte(EFW_MAX_SLOT_OFFSET)

        logger.debug(
            f"position report: status={status}, error=0x{error_code:02x}, "
            f"{consistency}, max={slot_count}"
        )

        if slot_count != EFW_SLOT_COUNT and not self._slot_count_warned:
            logger.warning(
                f"Wheel reports {slot_count} slots, only {EFW_SLOT_COUNT}-slot wheels are supported"
            )
            self._slot_count_warned = True

        return classify_status(status, error_code, consistency, slot_count)
