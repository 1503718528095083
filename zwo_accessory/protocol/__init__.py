"""
Protocol package for ZWO feature report communication.
"""

from zwo_accessory.protocol.interface import HidTransportInterface, opened
from zwo_accessory.protocol.encoder import (
    ParsedFrame,
    ProtocolAnomaly,
    decode_response,
    encode_command,
    encode_request,
    parse_response,
)
from zwo_accessory.protocol.logger import ProtocolLogger, get_protocol_logger

__all__ = [
    "HidTransportInterface",
    "opened",
    "ParsedFrame",
    "ProtocolAnomaly",
    "decode_response",
    "encode_command",
    "encode_request",
    "parse_response",
    "ProtocolLogger",
    "get_protocol_logger",
]
