"""
Move controllers (settle-polling state machine).

Each controller owns one open device for one run and drives it through
POLLING until it reaches SETTLED or FATAL. Everything is synchronous: the
only wait is a fixed sleep between polls.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from zwo_accessory.drivers.filter_wheel import FilterWheelDriver
from zwo_accessory.drivers.focuser import FocuserDriver
from zwo_accessory.drivers.status import DeviceStatus
from zwo_accessory.motion.targets import MoveTarget
from zwo_accessory.protocol.commands import EFW_SLOT_COUNT
from zwo_accessory.utils.exceptions import (
    DeviceFault,
    InvalidSlotError,
    StepSettleTimeoutError,
    ZwoAccessoryException,
)


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 500
DEFAULT_STEP_ATTEMPTS = 100

FATAL_MESSAGE = "unrecoverable error, needs physical reset"


class ControllerState(Enum):
    POLLING = "polling"
    SETTLED = "settled"
    FATAL = "fatal"


def next_slot(current: int, slot_count: int = EFW_SLOT_COUNT) -> int:
    """The slot one step forward from current, wrapping after the last."""
    return ((current - 1 + 1) % slot_count) + 1


class MoveController:
    """
    Polling loop shared by both accessories.

    Args:
        driver: Device driver with a get_position() -> DeviceStatus method.
        poll_interval_ms: Fixed sleep between polls.
        sleep: Sleep function (seconds), replaceable in tests.
        report: Sink for progress lines (stdout by default).
    """

    def __init__(
        self,
        driver,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        sleep: Callable[[float], None] = time.sleep,
        report: Callable[[str], None] = print,
    ):
        self.driver = driver
        self.poll_interval_ms = poll_interval_ms
        self._sleep = sleep
        self._report = report
        self.state = ControllerState.POLLING
        self.last_status: Optional[DeviceStatus] = None

    def _wait(self) -> None:
        self._sleep(self.poll_interval_ms / 1000.0)

    def _poll_once(self) -> DeviceStatus:
        """
        One get_position() call.

        Raises:
            DeviceFault: On a fatal status; the controller moves to FATAL and
                the device must not be contacted again.
        """
        status = self.driver.get_position()
        self.last_status = status

        if status.is_fatal:
            self.state = ControllerState.FATAL
            logger.error(f"Fatal status: {status.error}")
            raise DeviceFault(f"{FATAL_MESSAGE}: {status.error}") from status.error

        return status

    def _fail(self, error: ZwoAccessoryException) -> ZwoAccessoryException:
        self.state = ControllerState.FATAL
        return error

    def wait_until_settled(self) -> DeviceStatus:
        """
        Poll until the device reports a settled position.

        There is no attempt limit: a device that never settles is polled
        until the process is terminated.

        Raises:
            DeviceFault: On a fatal status.
        """
        self.state = ControllerState.POLLING
        while True:
            status = self._poll_once()
            if status.is_settled:
                self.state = ControllerState.SETTLED
                return status
            logger.debug("Still moving, waiting")
            self._wait()


class FocuserMoveController(MoveController):
    """Status queries and absolute/relative moves for the EAF."""

    driver: FocuserDriver

    def query(self) -> DeviceStatus:
        """Wait for the focuser to settle and report position and maximum."""
        status = self.wait_until_settled()
        self._report(f"current pos = {status.value} (max {status.extra})")
        return status

    def move(self, target: MoveTarget, current: Optional[DeviceStatus] = None) -> int:
        """
        Move to target and poll until the focuser settles there.

        Args:
            target: Absolute position or delta.
            current: Last settled status; queried when not given.

        Returns:
            Final position (always the resolved target).

        Raises:
            TargetOutOfRangeError: Before any command is sent.
            DeviceFault: On a fatal status while polling.
            TransportError: If the set command cannot be sent.
        """
        if current is None or not current.is_settled:
            current = self.query()

        try:
            resolved = target.resolve(current.value, current.extra)
        except ZwoAccessoryException as e:
            raise self._fail(e)

        logger.info(f"Requesting target {resolved} (from {current.value})")

        try:
            self.driver.set_position(resolved)
        except ZwoAccessoryException as e:
            raise self._fail(e)

        self.state = ControllerState.POLLING
        while True:
            status = self._poll_once()
            self._report(f"current pos = {status.value} (target {resolved})")
            # settling short of the target is not an error, keep polling
            if status.is_settled and status.value == resolved:
                self.state = ControllerState.SETTLED
                logger.info(f"Focuser settled at {resolved}")
                return status.value
            self._wait()


class FilterWheelMoveController(MoveController):
    """
    Slot changes for the EFW using the stepping workaround.

    Commanding a distant slot directly can overrun the wheel controller
    and lock it up until it is power cycled, so the wheel is only ever
    asked to advance to the next slot forward.
    """

    driver: FilterWheelDriver

    def __init__(self, driver, step_attempts: int = DEFAULT_STEP_ATTEMPTS, **kwargs):
        super().__init__(driver, **kwargs)
        self.step_attempts = step_attempts

    def identify(self) -> None:
        self.driver.get_info()

    def query(self) -> int:
        """Wait for the wheel to settle and return the current slot."""
        status = self.wait_until_settled()
        self._report(f"current slot = {status.value}")
        return status.value

    def _step(self, slot: int) -> None:
        """
        Request one forward step and wait for it to settle.

        Raises:
            StepSettleTimeoutError: If the wheel is not settled on slot
                within step_attempts polls.
            DeviceFault: On a fatal status.
        """
        self._report(f"request slot {slot}")
        self.driver.set_position(slot)

        self.state = ControllerState.POLLING
        for attempt in range(1, self.step_attempts + 1):
            # the wheel takes a moment to pick up the request, so a settled
            # report on the old slot is not the end of the step
            status = self._poll_once()
            if status.is_settled and status.value == slot:
                logger.debug(f"Slot {slot} settled after {attempt} polls")
                return
            self._wait()

        raise self._fail(StepSettleTimeoutError(
            f"wheel did not settle on slot {slot} after {self.step_attempts} polls"
        ))

    def move(self, target: Optional[int] = None) -> int:
        """
        Advance one slot at a time until target is reached.

        Args:
            target: Slot 1-7; None or 0 keeps the current slot.

        Returns:
            Final settled slot.

        Raises:
            InvalidSlotError: Before any command is sent.
            StepSettleTimeoutError: If a step does not settle.
            DeviceFault: On a fatal status.
            TransportError: If a set command cannot be sent.
        """
        if target and (target < 1 or target > EFW_SLOT_COUNT):
            raise self._fail(InvalidSlotError(f"Slot must be 1-{EFW_SLOT_COUNT}, got {target}"))

        current = self.query()
        if not target:
            target = current  # no change requested

        while current != target:
            slot = next_slot(current)
            try:
                self._step(slot)
            except ZwoAccessoryException as e:
                raise self._fail(e)
            current = slot
            self._report(f"current slot = {current}")

        self.state = ControllerState.SETTLED
        self._report(f"final slot = {current}")
        return current
