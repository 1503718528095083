"""Tests for the EFW filter wheel driver."""

import logging

import pytest

from zwo_accessory.drivers.filter_wheel import FilterWheelDriver, classify_status
from zwo_accessory.protocol.commands import EFW_IDENTITY
from zwo_accessory.utils.exceptions import DeviceFault, InvalidSlotError, TransportError

from conftest import ScriptedTransport, efw_report


def test_classify_settled_when_readings_agree():
    """Three equal readings with status 1 are settled."""
    status = classify_status(1, 0, (3, 3, 3))
    assert status.is_settled
    assert status.value == 3
    assert status.extra == 7


@pytest.mark.parametrize("readings", [(3, 3, 4), (4, 3, 3), (3, 4, 3)])
def test_classify_disagreeing_readings_are_moving(readings):
    """A single disagreeing reading means the wheel is still turning."""
    assert classify_status(1, 0, readings).is_moving


def test_classify_moving_status():
    """Agreeing readings with a non-stable status are still moving."""
    assert classify_status(4, 0, (3, 3, 3)).is_moving


def test_classify_locked_is_fatal():
    """Status 6 is fatal."""
    status = classify_status(6, 0x0C, (7, 6, 7))
    assert status.is_fatal
    assert isinstance(status.error, DeviceFault)
    assert "status=6" in str(status.error)


def test_classify_error_code_is_fatal():
    """A nonzero error code while moving is fatal."""
    assert classify_status(4, 0x01, (2, 3, 2)).is_fatal


def test_get_info_exact_identity(protocol_logger):
    """The known identity produces no anomaly."""
    transport = ScriptedTransport([EFW_IDENTITY])
    FilterWheelDriver(transport, protocol_logger).get_info()

    assert transport.sent[0][:5] == bytes([0x03, 0x7E, 0x5A, 0x02, 0x04])
    assert protocol_logger.get_anomalies() == []


def test_get_info_other_model_is_anomaly_only(protocol_logger):
    """A different wheel model is reported and otherwise ignored."""
    identity = EFW_IDENTITY[:8] + b"EFW-M-1\x00"
    transport = ScriptedTransport([identity])
    FilterWheelDriver(transport, protocol_logger).get_info()

    anomalies = protocol_logger.get_anomalies()
    assert len(anomalies) == 1
    assert anomalies[0].offsets == (12, 14)


def test_get_info_short_read_raises(protocol_logger):
    """The identity probe propagates transport errors."""
    transport = ScriptedTransport([(EFW_IDENTITY, 3)])
    with pytest.raises(TransportError):
        FilterWheelDriver(transport, protocol_logger).get_info()


@pytest.mark.parametrize("slot", range(1, 8))
def test_set_position_frame(slot, protocol_logger):
    """The slot lands in byte 5 of an otherwise zeroed request."""
    transport = ScriptedTransport()
    FilterWheelDriver(transport, protocol_logger).set_position(slot)

    expected = bytearray(16)
    expected[:6] = bytes([0x03, 0x7E, 0x5A, 0x01, 0x02, slot])
    assert transport.sent == [bytes(expected)]


@pytest.mark.parametrize("slot", [0, 8, -1])
def test_set_position_invalid_slot(slot, protocol_logger):
    """Slots outside 1-7 are rejected without touching the device."""
    transport = ScriptedTransport()
    with pytest.raises(InvalidSlotError):
        FilterWheelDriver(transport, protocol_logger).set_position(slot)
    assert transport.sent == []


def test_get_position_settled(protocol_logger):
    """A clean stable report decodes to Settled(slot, 7)."""
    transport = ScriptedTransport([efw_report(1, (5, 5, 5))])
    status = FilterWheelDriver(transport, protocol_logger).get_position()

    assert status.is_settled
    assert status.value == 5
    assert protocol_logger.get_anomalies() == []


def test_get_position_transport_failure_is_fatal(protocol_logger):
    """A short read is Fatal."""
    transport = ScriptedTransport([(efw_report(1, (5, 5, 5)), 1)])
    assert FilterWheelDriver(transport, protocol_logger).get_position().is_fatal


def test_get_position_odd_slot_count_warns_once(protocol_logger, caplog):
    """A wheel reporting other than 7 slots is warned about once."""
    transport = ScriptedTransport([
        efw_report(1, (2, 2, 2), slot_count=5),
        efw_report(1, (2, 2, 2), slot_count=5),
    ])
    driver = FilterWheelDriver(transport, protocol_logger)

    with caplog.at_level(logging.WARNING, logger="zwo_accessory.drivers.filter_wheel"):
        assert driver.get_position().is_settled
        assert driver.get_position().is_settled

    warnings = [r for r in caplog.records if "slots" in r.getMessage()]
    assert len(warnings) == 1
