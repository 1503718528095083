"""Tests for the transport layer and simulated devices."""

import pytest

from zwo_accessory.config.models import SimulatorConfig
from zwo_accessory.protocol.commands import (
    EAF_GET_POSITION,
    EAF_PRODUCT_ID,
    EAF_SET_POSITION,
    EAF_TARGET_OFFSET,
    EFW_GET_INFO,
    EFW_IDENTITY,
    EFW_PRODUCT_ID,
    EFW_SET_POSITION,
    EFW_SLOT_OFFSET,
    ZWO_VENDOR_ID,
)
from zwo_accessory.protocol.encoder import encode_command, encode_request
from zwo_accessory.protocol.hid_transport import HidTransport
from zwo_accessory.protocol.interface import opened
from zwo_accessory.simulator.mock_hid import MockFilterWheelDevice, MockFocuserDevice, MockHidDevice
from zwo_accessory.utils.exceptions import NotConnectedError, TransportError


class FakeHidDevice:
    """Minimal stand-in for an opened hid.device()."""

    def __init__(self, reply):
        self.reply = reply
        self.requests = []
        self.closed = False

    def send_feature_report(self, data):
        self.requests.append(data)
        return len(data)

    def get_feature_report(self, report_id, length):
        self.requests.append((report_id, length))
        return list(self.reply)

    def close(self):
        self.closed = True


def _attached(reply):
    transport = HidTransport()
    transport._device = FakeHidDevice(reply)
    transport._ids = "03c3:1f10"
    return transport


def test_hid_transport_count_excludes_report_id():
    """A backend that returns report id plus 16 bytes reports 16."""
    reply = bytes([0x01]) + bytes(range(16))
    transport = _attached(reply)
    buffer = bytearray(17)
    buffer[0] = 0x01

    assert transport.get_feature_report(buffer) == 16
    assert bytes(buffer) == reply
    assert transport._device.requests == [(0x01, 17)]


def test_hid_transport_short_reply_passes_count_through():
    transport = _attached(bytes(5))
    assert transport.get_feature_report(bytearray(17)) == 5


def test_hid_transport_not_open():
    transport = HidTransport()
    assert not transport.is_open()
    with pytest.raises(NotConnectedError):
        transport.send_feature_report(bytes(16))
    with pytest.raises(NotConnectedError):
        transport.get_feature_report(bytearray(17))


def test_hid_transport_close():
    transport = _attached(b"")
    device = transport._device
    transport.close()
    assert device.closed
    assert not transport.is_open()
    transport.close()


def test_opened_closes_on_error():
    """The device is closed even when the with block raises."""
    device = MockFocuserDevice()
    with pytest.raises(RuntimeError):
        with opened(device, ZWO_VENDOR_ID, EAF_PRODUCT_ID):
            assert device.is_open()
            raise RuntimeError("boom")
    assert not device.is_open()


def test_mock_rejects_wrong_ids():
    with pytest.raises(TransportError):
        MockFocuserDevice().open(ZWO_VENDOR_ID, EFW_PRODUCT_ID)


def test_mock_requires_open():
    with pytest.raises(NotConnectedError):
        MockFilterWheelDevice().send_feature_report(bytes(16))


def test_mock_read_without_request_returns_nothing():
    device = MockFocuserDevice()
    device.open(ZWO_VENDOR_ID, EAF_PRODUCT_ID)
    assert device.get_feature_report(bytearray(17)) == 0


def test_mock_focuser_ignores_move_without_fixed_tail():
    """A set request missing bytes 13-15 leaves the focuser where it is."""
    device = MockFocuserDevice(SimulatorConfig(focuser_position=1000))
    device.open(ZWO_VENDOR_ID, EAF_PRODUCT_ID)

    device.send_feature_report(encode_command(0x03, 0x01, [(EAF_TARGET_OFFSET, (2000).to_bytes(2, "big"))]))
    assert device.target == 1000

    device.send_feature_report(encode_request(EAF_SET_POSITION, [(EAF_TARGET_OFFSET, (2000).to_bytes(2, "big"))]))
    assert device.target == 2000


def test_mock_focuser_reports_motion():
    device = MockFocuserDevice(SimulatorConfig(focuser_position=1000, focuser_steps_per_poll=600))
    device.open(ZWO_VENDOR_ID, EAF_PRODUCT_ID)
    device.send_feature_report(encode_request(EAF_SET_POSITION, [(EAF_TARGET_OFFSET, (2000).to_bytes(2, "big"))]))

    buffer = bytearray(17)
    device.send_feature_report(encode_request(EAF_GET_POSITION))
    assert device.get_feature_report(buffer) == 16
    assert buffer[4] == 1
    assert int.from_bytes(buffer[8:10], "big") == 1600

    device.send_feature_report(encode_request(EAF_GET_POSITION))
    device.get_feature_report(buffer)
    assert buffer[4] == 0
    assert int.from_bytes(buffer[8:10], "big") == 2000


def test_mock_wheel_identity():
    device = MockFilterWheelDevice()
    device.open(ZWO_VENDOR_ID, EFW_PRODUCT_ID)
    device.send_feature_report(encode_request(EFW_GET_INFO))

    buffer = bytearray(17)
    device.get_feature_report(buffer)
    assert bytes(buffer[:16]) == EFW_IDENTITY


def test_mock_wheel_locks_on_jump():
    """Asking for a slot more than one step away locks the wheel."""
    device = MockFilterWheelDevice(SimulatorConfig(wheel_slot=1))
    device.open(ZWO_VENDOR_ID, EFW_PRODUCT_ID)
    device.send_feature_report(encode_request(EFW_SET_POSITION, [(EFW_SLOT_OFFSET, bytes([4]))]))
    assert device.locked


class FailingConfigDevice(FakeHidDevice):
    """Opens fine, then rejects the blocking mode switch."""

    def __init__(self):
        super().__init__(b"")
        self.opened_with = None

    def open(self, vendor_id, product_id):
        self.opened_with = (vendor_id, product_id)

    def set_nonblocking(self, flag):
        raise OSError("device disconnected")


def test_hid_transport_open_uses_factory():
    created = []

    def factory():
        device = FakeHidDevice(b"")
        device.open = lambda vid, pid: None
        device.set_nonblocking = lambda flag: None
        created.append(device)
        return device

    transport = HidTransport(device_factory=factory)
    transport.open(ZWO_VENDOR_ID, EAF_PRODUCT_ID)

    assert transport.is_open()
    assert transport._device is created[0]


def test_hid_transport_closes_when_setup_fails():
    """A device that opened but could not be configured is closed again."""
    device = FailingConfigDevice()
    transport = HidTransport(device_factory=lambda: device)

    with pytest.raises(TransportError, match="unable to configure"):
        transport.open(ZWO_VENDOR_ID, EAF_PRODUCT_ID)

    assert device.opened_with == (ZWO_VENDOR_ID, EAF_PRODUCT_ID)
    assert device.closed
    assert not transport.is_open()


def test_mock_base_cannot_be_instantiated():
    """Simulated devices must say how they answer requests."""
    with pytest.raises(TypeError):
        MockHidDevice()
