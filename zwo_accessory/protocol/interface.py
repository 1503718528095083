"""
Abstract interface for HID feature report transports.

This interface allows transparent substitution between real hardware and simulator.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator


logger = logging.getLogger(__name__)


class HidTransportInterface(ABC):
    """Abstract base class for feature report transports."""

    @abstractmethod
    def open(self, vendor_id: int, product_id: int) -> None:
        """
        Open the first device matching the USB ids.

        Raises:
            TransportError: If the device cannot be opened.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the device. Safe to call when not open."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if a device is open.

        Returns:
            True if open, False otherwise.
        """
        pass

    @abstractmethod
    def send_feature_report(self, data: bytes) -> int:
        """
        Send a feature report (report id in data[0]).

        Args:
            data: 16-byte request frame.

        Returns:
            Number of bytes written; anything but 16 is a failure.

        Raises:
            TransportError: If the underlying call fails outright.
        """
        pass

    @abstractmethod
    def get_feature_report(self, buffer: bytearray) -> int:
        """
        Read a feature report into buffer.

        Args:
            buffer: 17-byte buffer with the report id in buffer[0]; filled in place.

        Returns:
            Number of bytes read, not counting the report id byte. Anything
            but 16 is a failure.

        Raises:
            TransportError: If the underlying call fails outright.
        """
        pass


@contextmanager
def opened(transport: HidTransportInterface, vendor_id: int, product_id: int) -> Iterator[HidTransportInterface]:
    """
    Open a transport for the duration of a with block.

    The device is closed on every exit path, including exceptions raised
    after a successful open.
    """
    transport.open(vendor_id, product_id)
    try:
        yield transport
    finally:
        transport.close()
        logger.debug(f"Closed device {vendor_id:04x}:{product_id:04x}")
