"""
Driver for the ZWO EAF electronic focuser.

The focuser understands two requests: set position (no response) and get
position. A position report looks like::

    01 7e 5a 03 | 01 | 00 00 00 | 61 d6 | 00 | 7f d2 | 32 | ea 60
    id  header  |stat|          |  pos  |    | extra |    |  max

Status 0 means stable; any other value has only ever been seen while moving.
"""

import logging

from zwo_accessory.drivers.base import FeatureReportDriver
from zwo_accessory.drivers.status import DeviceStatus
from zwo_accessory.protocol.commands import (
    EAF_EXTRA_OFFSETS,
    EAF_GET_POSITION,
    EAF_MAX_OFFSET,
    EAF_POSITION_OFFSET,
    EAF_SET_POSITION,
    EAF_STATUS_OFFSET,
    EAF_TARGET_OFFSET,
)
from zwo_accessory.utils.exceptions import EncodeError, TransportError


logger = logging.getLogger(__name__)

POSITION_LIMIT = 0xFFFF


def classify_status(status: int, position: int, maximum: int) -> DeviceStatus:
    """Map the focuser's status byte to a DeviceStatus."""
    if status == 0:
        return DeviceStatus.settled(position, maximum)
    return DeviceStatus.moving(position, maximum)


class FocuserDriver(FeatureReportDriver):
    """EAF get/set position commands."""

    def set_position(self, target: int) -> None:
        """
        Start a move to an absolute position.

        Returns as soon as the request is sent; the focuser has no response
        frame for this command.

        Raises:
            EncodeError: If target does not fit in 16 bits.
            TransportError: If the send fails.
        """
        if target < 0 or target > POSITION_LIMIT:
            raise EncodeError(f"Position must be 0-{POSITION_LIMIT}, got {target}")

        logger.debug(f"Requesting focuser position {target}")
        self._send(EAF_SET_POSITION, [(EAF_TARGET_OFFSET, target.to_bytes(2, "big"))])

    def get_position(self) -> DeviceStatus:
        """
        Query position, maximum and motion status.

        Transport failures are reported as a Fatal status rather than raised,
        so the polling loop has a single place to stop.
        """
        try:
            frame = self._request(EAF_GET_POSITION)
        except TransportError as e:
            logger.error(f"Position query failed: {e}")
            return DeviceStatus.fatal(e)

        status = frame.byte(EAF_STATUS_OFFSET)
        position = frame.u16(EAF_POSITION_OFFSET)
        maximum = frame.u16(EAF_MAX_OFFSET)
        extra = [frame.byte(offset) for offset in EAF_EXTRA_OFFSETS]

        logger.debug(
            f"position report: status={status}, status2=0x{extra[0]:02x}, "
            f"status3=0x{extra[1]:02x}, position={position}, max={maximum}"
        )

        return classify_status(status, position, maximum)
