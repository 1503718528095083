"""
Command encoding and response parsing for the ZWO feature report protocol.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from zwo_accessory.protocol.commands import (
    CommandLayout,
    FIELDS_OFFSET,
    HEADER,
    REPORT_LEN,
    REQUEST_REPORT_ID,
    RESPONSE_REPORT_ID,
)
from zwo_accessory.utils.exceptions import PayloadTooLargeError


def hex_dump(data: bytes) -> str:
    """Format bytes as space separated hex pairs."""
    return " ".join(f"{b:02x}" for b in data)


@dataclass(frozen=True)
class ProtocolAnomaly:
    """
    Constant bytes of a response that did not match what was expected.

    Never fatal: the frame is still decoded on a best-effort basis.
    """
    context: str
    offsets: Tuple[int, ...]
    expected: bytes
    received: bytes
    raw: bytes

    def describe(self) -> str:
        mismatches = ", ".join(
            f"[{offset}] {exp:02x}!={got:02x}"
            for offset, exp, got in zip(self.offsets, self.expected, self.received)
        )
        return f"unexpected values in {self.context}: {hex_dump(self.raw)} ({mismatches})"


@dataclass(frozen=True)
class ParsedFrame:
    """A decoded response buffer plus any anomaly found while checking it."""
    raw: bytes
    anomaly: Optional[ProtocolAnomaly] = None

    @property
    def echo(self) -> int:
        return self.raw[3]

    def byte(self, offset: int) -> int:
        return self.raw[offset]

    def u16(self, offset: int) -> int:
        """Big-endian unsigned 16-bit value at offset."""
        return int.from_bytes(self.raw[offset:offset + 2], "big")


def encode_command(
    command: int,
    subcommand: int,
    fields: Iterable[Tuple[int, bytes]] = (),
) -> bytes:
    """
    Encode a 16-byte request frame.

    Args:
        command: Command byte (offset 3).
        subcommand: Subcommand byte (offset 4).
        fields: (offset, bytes) overlays placed after zero-filling. Offsets
            count from the report id byte.

    Returns:
        16 bytes ready for send_feature_report.

    Raises:
        PayloadTooLargeError: If a field does not fit in bytes 5-15.

    Example:
        >>> encode_command(0x02, 0x03).hex()
        '037e5a02030000000000000000000000'
    """
    frame = bytearray(REPORT_LEN)
    frame[0] = REQUEST_REPORT_ID
    frame[1:3] = HEADER
    frame[3] = command
    frame[4] = subcommand

    for offset, data in fields:
        if offset < FIELDS_OFFSET or offset + len(data) > REPORT_LEN:
            raise PayloadTooLargeError(
                f"{len(data)} byte field at offset {offset} does not fit "
                f"in bytes {FIELDS_OFFSET}-{REPORT_LEN - 1}"
            )
        frame[offset:offset + len(data)] = data

    return bytes(frame)


def parse_response(
    buffer: bytes,
    expected_echo: int,
    constants: Sequence[Tuple[int, int]] = (),
    context: str = "response",
) -> ParsedFrame:
    """
    Parse a response buffer, recording mismatched constant bytes.

    A mismatch does not stop decoding; firmware variants may differ in
    bytes whose meaning is not known.

    Args:
        buffer: Response buffer (17 bytes, of which 16 are meaningful).
        expected_echo: Expected byte 3 (the request's subcommand).
        constants: Extra (offset, value) pairs expected to be constant.
        context: Name used in the anomaly report.

    Returns:
        ParsedFrame with anomaly set if anything did not match.
    """
    raw = bytes(buffer[:REPORT_LEN])
    checks = [
        (0, RESPONSE_REPORT_ID),
        (1, HEADER[0]),
        (2, HEADER[1]),
        (3, expected_echo),
        *constants,
    ]

    offsets = []
    expected = bytearray()
    received = bytearray()
    for offset, value in checks:
        if raw[offset] != value:
            offsets.append(offset)
            expected.append(value)
            received.append(raw[offset])

    anomaly = None
    if offsets:
        anomaly = ProtocolAnomaly(
            context=context,
            offsets=tuple(offsets),
            expected=bytes(expected),
            received=bytes(received),
            raw=raw,
        )

    return ParsedFrame(raw=raw, anomaly=anomaly)


def encode_request(layout: CommandLayout, fields: Iterable[Tuple[int, bytes]] = ()) -> bytes:
    """Encode a request for a named layout, including its fixed fields."""
    return encode_command(
        layout.command,
        layout.subcommand,
        list(layout.fixed_fields) + list(fields),
    )


def decode_response(buffer: bytes, layout: CommandLayout) -> ParsedFrame:
    """Parse a response against a named layout."""
    if not layout.has_response:
        raise ValueError(f"{layout.name} has no response frame")
    return parse_response(
        buffer,
        layout.response_echo,
        layout.response_constants,
        context=layout.name,
    )
