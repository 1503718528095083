"""
Control tools for ZWO EAF focusers and EFW filter wheels.

Drives the accessories over their vendor-specific USB HID feature report
protocol, learned from usbmon captures.
"""

__version__ = "1.0.0"
