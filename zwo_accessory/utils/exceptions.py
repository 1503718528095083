"""
Custom exception classes for the ZWO accessory tools.
"""


class ZwoAccessoryException(Exception):
    """Base exception for all accessory control errors."""
    pass


class ArgumentError(ZwoAccessoryException):
    """Malformed or out-of-range command line value (no device contact made)."""
    pass


class TransportError(ZwoAccessoryException):
    """Device open failed, or a feature report transfer returned the wrong byte count."""
    pass


class NotConnectedError(TransportError):
    """Raised when a transfer is attempted on a transport that is not open."""
    pass


class DeviceFault(ZwoAccessoryException):
    """Device reported an unrecoverable condition; needs a physical reset."""
    pass


class TargetOutOfRangeError(ZwoAccessoryException):
    """Resolved target position or slot is outside the device's valid range."""
    pass


class InvalidSlotError(TargetOutOfRangeError):
    """Filter wheel slot outside 1-7."""
    pass


class StepSettleTimeoutError(ZwoAccessoryException):
    """A single filter wheel step did not settle within the polling window."""
    pass


class EncodeError(ZwoAccessoryException):
    """A command frame could not be built."""
    pass


class PayloadTooLargeError(EncodeError):
    """A payload field does not fit in the 16-byte frame."""
    pass
