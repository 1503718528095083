"""Shared fixtures: a scripted transport and frame builders."""

import logging
from collections import deque

import pytest

from zwo_accessory.protocol.commands import EFW_SLOT_COUNT, REPORT_LEN
from zwo_accessory.protocol.interface import HidTransportInterface
from zwo_accessory.protocol.logger import ProtocolLogger


def eaf_report(status: int, position: int, maximum: int = 60000) -> bytes:
    """Build an EAF position report like the ones seen on the wire."""
    return (
        bytes([0x01, 0x7E, 0x5A, 0x03, status, 0x00, 0x00, 0x00])
        + position.to_bytes(2, "big")
        + bytes([0x00, 0x7F, 0xD2, 0x32])
        + maximum.to_bytes(2, "big")
    )


def efw_report(status: int, readings, error: int = 0, slot_count: int = EFW_SLOT_COUNT) -> bytes:
    """Build an EFW position report."""
    return bytes([0x01, 0x7E, 0x5A, 0x01, status, error, *readings, slot_count,
                  0x00, 0x00, 0x00, 0x00, 0x30, 0x00])


class ScriptedTransport(HidTransportInterface):
    """
    Transport that records requests and replays canned responses.

    A response entry may be bytes (returned with a 16-byte count), a
    (bytes, count) tuple, or an exception instance to raise.
    """

    def __init__(self, responses=(), write_count: int = REPORT_LEN):
        self.responses = deque(responses)
        self.write_count = write_count
        self.sent = []
        self.open_calls = 0
        self.close_calls = 0
        self._open = False

    def open(self, vendor_id, product_id):
        self.open_calls += 1
        self._open = True

    def close(self):
        self.close_calls += 1
        self._open = False

    def is_open(self):
        return self._open

    def send_feature_report(self, data):
        self.sent.append(bytes(data))
        return self.write_count

    def get_feature_report(self, buffer):
        item = self.responses.popleft()
        if isinstance(item, Exception):
            raise item
        count = REPORT_LEN
        if isinstance(item, tuple):
            item, count = item
        buffer[:len(item)] = item
        return count


@pytest.fixture(autouse=True)
def restore_root_logging():
    """CLI runs reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def protocol_logger():
    return ProtocolLogger()


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested durations."""
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep
