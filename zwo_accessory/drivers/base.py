"""
Shared request/response plumbing for feature report drivers.
"""

import logging
from typing import Iterable, Optional, Tuple

from zwo_accessory.protocol.commands import (
    CommandLayout,
    REPORT_LEN,
    RESPONSE_BUFFER_LEN,
    RESPONSE_REPORT_ID,
)
from zwo_accessory.protocol.encoder import ParsedFrame, decode_response, encode_request
from zwo_accessory.protocol.interface import HidTransportInterface
from zwo_accessory.protocol.logger import ProtocolLogger, get_protocol_logger
from zwo_accessory.utils.exceptions import TransportError


logger = logging.getLogger(__name__)


class FeatureReportDriver:
    """
    Base class for EAF/EFW drivers.

    Owns no device state: every call is a fresh blocking exchange with the
    transport. Anomalies found while decoding go to the protocol logger.
    """

    def __init__(
        self,
        transport: HidTransportInterface,
        protocol_logger: Optional[ProtocolLogger] = None,
    ):
        self.transport = transport
        self.protocol_logger = protocol_logger or get_protocol_logger()

    def _send(self, layout: CommandLayout, fields: Iterable[Tuple[int, bytes]] = ()) -> None:
        """
        Encode and send a request.

        Raises:
            TransportError: If fewer or more than 16 bytes were written.
        """
        frame = encode_request(layout, fields)
        self.protocol_logger.log_tx(frame, layout.name)

        written = self.transport.send_feature_report(frame)
        if written != REPORT_LEN:
            raise TransportError(
                f"{layout.name}: wrote {written} of {REPORT_LEN} bytes"
            )

    def _request(self, layout: CommandLayout) -> ParsedFrame:
        """
        Send a request and read its response.

        Returns:
            The parsed response; anomalies have already been reported.

        Raises:
            TransportError: If either transfer has the wrong byte count.
        """
        self._send(layout)

        # requesting more than 17 bytes makes the device send gibberish
        buffer = bytearray(RESPONSE_BUFFER_LEN)
        buffer[0] = RESPONSE_REPORT_ID
        read = self.transport.get_feature_report(buffer)
        if read != REPORT_LEN:
            raise TransportError(
                f"{layout.name}: read {read} of {REPORT_LEN} bytes"
            )

        self.protocol_logger.log_rx(bytes(buffer[:REPORT_LEN]), layout.name)

        parsed = decode_response(buffer, layout)
        if parsed.anomaly is not None:
            self.protocol_logger.log_anomaly(parsed.anomaly)
        return parsed
