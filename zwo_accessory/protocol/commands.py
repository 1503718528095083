"""
Frame layout descriptors for the ZWO EAF/EFW feature report command set.

Every request is a 16-byte feature report, every response a 17-byte buffer
(report id + 16 bytes). Offsets below count from byte 0, the report id::

    +-----------+--------+---------+------------+--------------------------+
    | report id | header | command | subcommand |  command-specific fields |
    |  byte 0   |  1-2   |  byte 3 |   byte 4   |          5-15            |
    +-----------+--------+---------+------------+--------------------------+

Responses echo the request's subcommand at byte 3; byte 4 onwards is
device-specific.

Most of this was learned from usbmon captures, so several constant bytes
are reproduced without knowing what they mean.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


REPORT_LEN = 16
RESPONSE_BUFFER_LEN = REPORT_LEN + 1

REQUEST_REPORT_ID = 0x03
RESPONSE_REPORT_ID = 0x01
HEADER = bytes([0x7E, 0x5A])  # "~Z"

# First byte available to command-specific fields
FIELDS_OFFSET = 5

ZWO_VENDOR_ID = 0x03C3
EAF_PRODUCT_ID = 0x1F10
EFW_PRODUCT_ID = 0x1F01


@dataclass(frozen=True)
class CommandLayout:
    """
    Named description of one request and, if any, its response.

    Attributes:
        name: Human-readable name used in logs and anomaly reports.
        command: Byte 3 of the request.
        subcommand: Byte 4 of the request.
        fixed_fields: (offset, bytes) overlays that must always be sent.
        response_echo: Expected byte 3 of the response, None if the device
            sends no response for this command.
        response_constants: (offset, value) pairs observed to be constant
            in every response.
    """
    name: str
    command: int
    subcommand: int
    fixed_fields: Tuple[Tuple[int, bytes], ...] = ()
    response_echo: Optional[int] = None
    response_constants: Tuple[Tuple[int, int], ...] = ()

    @property
    def has_response(self) -> bool:
        return self.response_echo is not None


# --- EAF focuser ---------------------------------------------------------

EAF_TARGET_OFFSET = 8       # big-endian u16
EAF_STATUS_OFFSET = 4       # 0 = stable, nonzero = moving
EAF_POSITION_OFFSET = 8     # big-endian u16
EAF_EXTRA_OFFSETS = (11, 12)  # unknown, logged only
EAF_MAX_OFFSET = 14         # big-endian u16

EAF_SET_POSITION = CommandLayout(
    name="eaf set position",
    command=0x03,
    subcommand=0x01,
    # purpose unknown, the focuser ignores the move without them
    fixed_fields=((13, bytes([0x02, 0xEA, 0x60])),),
)

EAF_GET_POSITION = CommandLayout(
    name="eaf position report",
    command=0x02,
    subcommand=0x03,
    response_echo=0x03,
    response_constants=(
        (5, 0x00), (6, 0x00), (7, 0x00),
        (10, 0x00),
        (14, 0xEA), (15, 0x60),
    ),
)

# --- EFW filter wheel ----------------------------------------------------

EFW_SLOT_COUNT = 7
EFW_SLOT_OFFSET = 5         # request: target slot, first filter is 1
EFW_STATUS_OFFSET = 4       # 1 = stable, 4 = moving, 6 = locked up
EFW_ERROR_OFFSET = 5
EFW_CONSISTENCY_OFFSETS = (6, 7, 8)
EFW_MAX_SLOT_OFFSET = 9

EFW_STATUS_STABLE = 1
EFW_STATUS_LOCKED = 6

# Info response of the one 7-slot wheel this was developed against
EFW_IDENTITY = bytes([
    0x01, 0x7E, 0x5A, 0x04, 0x03, 0x00, 0x09, 0x00,
]) + b"EFW-S-0\x00"

EFW_GET_INFO = CommandLayout(
    name="efw info report",
    command=0x02,
    subcommand=0x04,
    response_echo=0x04,
    response_constants=tuple(enumerate(EFW_IDENTITY))[4:],
)

EFW_SET_POSITION = CommandLayout(
    name="efw set position",
    command=0x01,
    subcommand=0x02,
)

EFW_GET_POSITION = CommandLayout(
    name="efw position report",
    command=0x02,
    subcommand=0x01,
    response_echo=0x01,
    # bytes 10-15 look like leftovers from earlier requests on the wheel side
    response_constants=(
        (10, 0x00), (11, 0x00), (12, 0x00), (13, 0x00),
        (14, 0x30), (15, 0x00),
    ),
)
