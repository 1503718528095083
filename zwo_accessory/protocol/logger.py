"""
Protocol traffic logger.

TX/RX frames are dumped as hex at DEBUG level (visible with ``-v``).
Protocol anomalies are kept and written as warnings with the raw frame.
Drivers take an instance so callers (and tests) can inject their own.
"""

import logging
from typing import List, Optional

from zwo_accessory.protocol.encoder import ProtocolAnomaly, hex_dump


logger = logging.getLogger(__name__)


class ProtocolLogger:
    """Counts frames and collects anomalies for one run."""

    def __init__(self):
        self._anomalies: List[ProtocolAnomaly] = []
        self._tx_count = 0
        self._rx_count = 0

    def _dump(self, direction: str, data: bytes, name: Optional[str]) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            label = f" ({name})" if name else ""
            logger.debug(f"{direction}{label}: {hex_dump(data)}")

    def log_tx(self, data: bytes, name: Optional[str] = None) -> None:
        """Log a request frame; name is the command layout name."""
        self._tx_count += 1
        self._dump("TX", data, name)

    def log_rx(self, data: bytes, name: Optional[str] = None) -> None:
        """Log the 16 meaningful bytes of a response, report id included."""
        self._rx_count += 1
        self._dump("RX", data, name)

    def log_anomaly(self, anomaly: ProtocolAnomaly) -> None:
        """
        Record a protocol anomaly and dump the raw frame.

        Args:
            anomaly: Mismatch found while decoding a response.
        """
        self._anomalies.append(anomaly)
        logger.warning(anomaly.describe())

    def get_anomalies(self) -> List[ProtocolAnomaly]:
        """All anomalies recorded so far."""
        return list(self._anomalies)

    def get_stats(self) -> dict:
        """Get traffic statistics."""
        return {
            "tx_count": self._tx_count,
            "rx_count": self._rx_count,
            "anomaly_count": len(self._anomalies),
        }


# Global instance
_logger: Optional[ProtocolLogger] = None


def get_protocol_logger() -> ProtocolLogger:
    """Get or create the global protocol logger."""
    global _logger
    if _logger is None:
        _logger = ProtocolLogger()
    return _logger
