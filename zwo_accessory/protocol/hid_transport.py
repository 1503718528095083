"""
Real HID transport for ZWO accessories.

Implements HidTransportInterface on top of the ``hidapi`` binding
(``pip install hidapi``, imported as ``hid``). May need root or a udev rule
on Linux.
"""

import logging
from typing import Callable, Optional

from zwo_accessory.protocol.interface import HidTransportInterface
from zwo_accessory.utils.exceptions import NotConnectedError, TransportError


logger = logging.getLogger(__name__)

def _hidapi_device():
    import hid

    return hid.device()


class HidTransport(HidTransportInterface):
    """
    Feature report transport over hidapi.

    hidapi backends disagree on whether the count returned by a feature
    report read includes the report id byte; counts are normalized here so
    callers always see the payload length.

    Args:
        device_factory: Returns an unopened hidapi device object; the
            default creates ``hid.device()``.
    """

    def __init__(self, device_factory: Callable[[], object] = _hidapi_device):
        self._device_factory = device_factory
        self._device = None
        self._ids: Optional[str] = None

    def open(self, vendor_id: int, product_id: int) -> None:
        """Open the device with hidapi."""
        if self._device is not None:
            logger.warning("Already open")
            return

        ids = f"{vendor_id:04x}:{product_id:04x}"
        logger.info(f"Opening HID device {ids}")

        device = self._device_factory()
        try:
            device.open(vendor_id, product_id)
        except (OSError, IOError) as e:
            raise TransportError(f"unable to open device {ids}: {e}") from e

        self._device = device
        self._ids = ids
        try:
            device.set_nonblocking(False)
        except (OSError, IOError, ValueError) as e:
            self.close()
            raise TransportError(f"unable to configure device {ids}: {e}") from e

    def close(self) -> None:
        """Close the device."""
        if self._device is None:
            return

        try:
            self._device.close()
            logger.info(f"Closed HID device {self._ids}")
        finally:
            self._device = None
            self._ids = None

    def is_open(self) -> bool:
        return self._device is not None

    def send_feature_report(self, data: bytes) -> int:
        if self._device is None:
            raise NotConnectedError("HID device not open")

        try:
            return self._device.send_feature_report(bytes(data))
        except (OSError, IOError, ValueError) as e:
            raise TransportError(f"send_feature_report failed: {e}") from e

    def get_feature_report(self, buffer: bytearray) -> int:
        if self._device is None:
            raise NotConnectedError("HID device not open")

        try:
            data = self._device.get_feature_report(buffer[0], len(buffer))
        except (OSError, IOError, ValueError) as e:
            raise TransportError(f"get_feature_report failed: {e}") from e

        count = len(data)
        buffer[:count] = bytes(data)

        # hidraw counts the report id, libusb does not
        if count == len(buffer):
            count -= 1
        return count
