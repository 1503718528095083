"""
Simulated EAF focuser and EFW filter wheel.

Both speak the real feature report protocol through HidTransportInterface,
so drivers and controllers run unchanged against them. Motion advances one
increment per position poll instead of in real time.
"""

import logging
from abc import abstractmethod
from typing import Optional

from zwo_accessory.config.models import SimulatorConfig
from zwo_accessory.protocol.commands import (
    EAF_GET_POSITION,
    EAF_PRODUCT_ID,
    EAF_SET_POSITION,
    EAF_TARGET_OFFSET,
    EFW_GET_INFO,
    EFW_GET_POSITION,
    EFW_IDENTITY,
    EFW_PRODUCT_ID,
    EFW_SET_POSITION,
    EFW_SLOT_COUNT,
    EFW_SLOT_OFFSET,
    EFW_STATUS_LOCKED,
    EFW_STATUS_STABLE,
    HEADER,
    REPORT_LEN,
    REQUEST_REPORT_ID,
    RESPONSE_REPORT_ID,
    ZWO_VENDOR_ID,
)
from zwo_accessory.protocol.interface import HidTransportInterface
from zwo_accessory.utils.exceptions import NotConnectedError, TransportError


logger = logging.getLogger(__name__)

EFW_STATUS_MOVING = 4


class MockHidDevice(HidTransportInterface):
    """
    Base for simulated devices.

    A request with a response stores it; the next get_feature_report()
    returns it. Reads with nothing pending return 0 bytes, like a device
    that was never asked anything.
    """

    PRODUCT_ID = 0

    def __init__(self, config: Optional[SimulatorConfig] = None):
        self.config = config or SimulatorConfig()
        self._open = False
        self._pending: Optional[bytes] = None
        self.sent_frames = []

    def open(self, vendor_id: int, product_id: int) -> None:
        if (vendor_id, product_id) != (ZWO_VENDOR_ID, self.PRODUCT_ID):
            raise TransportError(f"unable to open device {vendor_id:04x}:{product_id:04x}")
        self._open = True
        logger.info(f"[SIMULATOR] {type(self).__name__} opened")

    def close(self) -> None:
        if self._open:
            logger.info(f"[SIMULATOR] {type(self).__name__} closed")
        self._open = False
        self._pending = None

    def is_open(self) -> bool:
        return self._open

    def send_feature_report(self, data: bytes) -> int:
        if not self._open:
            raise NotConnectedError("Simulator not open")

        data = bytes(data)
        self.sent_frames.append(data)
        if len(data) != REPORT_LEN or data[0] != REQUEST_REPORT_ID or data[1:3] != HEADER:
            logger.warning(f"[SIMULATOR] Ignoring malformed request: {data.hex()}")
            return len(data)

        self._pending = self._handle(data[3], data[4], data)
        return len(data)

    def get_feature_report(self, buffer: bytearray) -> int:
        if not self._open:
            raise NotConnectedError("Simulator not open")

        if self._pending is None:
            return 0

        buffer[:REPORT_LEN] = self._pending
        self._pending = None
        return REPORT_LEN

    @abstractmethod
    def _handle(self, command: int, subcommand: int, frame: bytes) -> Optional[bytes]:
        """Act on a request; return the response frame, or None if there is none."""
        pass

    @staticmethod
    def _response(echo: int, body: bytes) -> bytes:
        frame = bytes([RESPONSE_REPORT_ID]) + HEADER + bytes([echo]) + body
        return frame.ljust(REPORT_LEN, b"\x00")


class MockFocuserDevice(MockHidDevice):
    """Simulated EAF focuser."""

    PRODUCT_ID = EAF_PRODUCT_ID

    def __init__(self, config: Optional[SimulatorConfig] = None):
        super().__init__(config)
        self.position = self.config.focuser_position
        self.maximum = self.config.focuser_max
        self.target = self.position

    @property
    def moving(self) -> bool:
        return self.position != self.target

    def _handle(self, command: int, subcommand: int, frame: bytes) -> Optional[bytes]:
        if (command, subcommand) == (EAF_SET_POSITION.command, EAF_SET_POSITION.subcommand):
            for offset, data in EAF_SET_POSITION.fixed_fields:
                if frame[offset:offset + len(data)] != data:
                    logger.warning("[SIMULATOR] Move ignored, fixed tail bytes missing")
                    return None
            requested = int.from_bytes(frame[EAF_TARGET_OFFSET:EAF_TARGET_OFFSET + 2], "big")
            self.target = min(requested, self.maximum)
            logger.info(f"[SIMULATOR] Focuser moving {self.position} -> {self.target}")
            return None

        if (command, subcommand) == (EAF_GET_POSITION.command, EAF_GET_POSITION.subcommand):
            self._advance()
            return self._position_report()

        logger.warning(f"[SIMULATOR] Unknown focuser command {command:02x}/{subcommand:02x}")
        return None

    def _advance(self) -> None:
        if not self.moving:
            return
        step = min(self.config.focuser_steps_per_poll, abs(self.target - self.position))
        self.position += step if self.target > self.position else -step

    def _position_report(self) -> bytes:
        status = 1 if self.moving else 0
        body = (
            bytes([status, 0x00, 0x00, 0x00])
            + self.position.to_bytes(2, "big")
            + bytes([0x00, 0x7F, 0xD2, 0x32])
            + self.maximum.to_bytes(2, "big")
        )
        return self._response(EAF_GET_POSITION.response_echo, body)


class MockFilterWheelDevice(MockHidDevice):
    """
    Simulated 7-slot EFW filter wheel.

    The first poll after a set request still shows the old slot as
    settled; then the wheel reports motion with disagreeing slot readings
    for a few polls before settling. Asking for anything but the next slot
    forward locks it up (status 6) when wheel_lockup_on_jump is set.
    """

    PRODUCT_ID = EFW_PRODUCT_ID

    def __init__(self, config: Optional[SimulatorConfig] = None):
        super().__init__(config)
        self.slot = self.config.wheel_slot
        self.target = self.slot
        self.locked = False
        self._picked_up = True
        self._polls_remaining = 0

    def _handle(self, command: int, subcommand: int, frame: bytes) -> Optional[bytes]:
        if (command, subcommand) == (EFW_GET_INFO.command, EFW_GET_INFO.subcommand):
            return EFW_IDENTITY

        if (command, subcommand) == (EFW_SET_POSITION.command, EFW_SET_POSITION.subcommand):
            self._request_slot(frame[EFW_SLOT_OFFSET])
            return None

        if (command, subcommand) == (EFW_GET_POSITION.command, EFW_GET_POSITION.subcommand):
            return self._position_report()

        logger.warning(f"[SIMULATOR] Unknown wheel command {command:02x}/{subcommand:02x}")
        return None

    def _request_slot(self, slot: int) -> None:
        if slot < 1 or slot > EFW_SLOT_COUNT or self.locked:
            return

        if slot != self.slot and slot != self.slot % EFW_SLOT_COUNT + 1 and self.config.wheel_lockup_on_jump:
            logger.warning(f"[SIMULATOR] Jump {self.slot} -> {slot} locked the wheel up")
            self.locked = True
            self.target = slot
            return

        self.target = slot
        self._picked_up = False
        self._polls_remaining = self.config.wheel_polls_per_step
        logger.info(f"[SIMULATOR] Wheel moving {self.slot} -> {slot}")

    def _position_report(self) -> bytes:
        if self.locked:
            return self._report(EFW_STATUS_LOCKED, 0x0C, (self.target, self.slot, self.target))

        if not self._picked_up:
            self._picked_up = True
            return self._report(EFW_STATUS_STABLE, 0x00, (self.slot,) * 3)

        if self._polls_remaining > 0:
            self._polls_remaining -= 1
            if self._polls_remaining > 0:
                return self._report(EFW_STATUS_MOVING, 0x00, (self.target, self.slot, self.target))
            self.slot = self.target

        return self._report(EFW_STATUS_STABLE, 0x00, (self.slot,) * 3)

    def _report(self, status: int, error: int, readings) -> bytes:
        body = bytes([status, error, *readings, EFW_SLOT_COUNT, 0, 0, 0, 0, 0x30, 0x00])
        return self._response(EFW_GET_POSITION.response_echo, body)
