"""
Command line tools for the ZWO EAF focuser and EFW filter wheel.

Usage:
    zwoeaf-set [--config PATH] [--simulate] [-v] [<abs pos>|<[-+]rel pos>]
    zwoefw-set [--config PATH] [--simulate] [-v] [<slot 1-7>]

Progress goes to standard output, with the last line being the
authoritative position. Diagnostics go to standard error. Exit status is 0
only when the device ended up where it was asked to go.
"""

import argparse
import logging
import sys
from typing import List, Optional

from zwo_accessory import __version__
from zwo_accessory.config.loader import ConfigurationError, load_config
from zwo_accessory.config.models import AppConfig
from zwo_accessory.drivers.filter_wheel import FilterWheelDriver
from zwo_accessory.drivers.focuser import FocuserDriver
from zwo_accessory.motion.controller import FilterWheelMoveController, FocuserMoveController
from zwo_accessory.motion.targets import parse_slot, parse_target
from zwo_accessory.protocol.commands import EFW_SLOT_COUNT
from zwo_accessory.protocol.hid_transport import HidTransport
from zwo_accessory.protocol.interface import HidTransportInterface, opened
from zwo_accessory.protocol.logger import get_protocol_logger
from zwo_accessory.simulator.mock_hid import MockFilterWheelDevice, MockFocuserDevice
from zwo_accessory.utils.exceptions import ZwoAccessoryException
from zwo_accessory.utils.logging_setup import setup_logging


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 2


def _build_parser(prog: str, description: str, positional: str, help_text: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument(positional, nargs="?", default=None, help=help_text)
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to JSON configuration file (default: built-in settings)"
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Drive an in-process simulated device instead of real hardware"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log protocol traffic at DEBUG level on standard error"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _prepare(args: argparse.Namespace) -> Optional[AppConfig]:
    """Load config and set up logging; None if the config is unusable."""
    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return None

    setup_logging(config.logging, verbose=args.verbose)
    return config


def _log_protocol_stats() -> None:
    logger.debug(f"Protocol stats: {get_protocol_logger().get_stats()}")


def run_focuser(
    config: AppConfig,
    transport: HidTransportInterface,
    position: Optional[str],
    sleep=None,
) -> int:
    """
    Report the focuser position, then move it if a position was given.

    Args:
        config: Application configuration.
        transport: Real or simulated transport (opened and closed here).
        position: Raw position argument, or None to only report.
        sleep: Optional sleep override for the polling loop.

    Returns:
        Process exit status.
    """
    target = None
    if position is not None:
        try:
            target = parse_target(position)
        except ZwoAccessoryException as e:
            print(e, file=sys.stderr)
            return EXIT_FAILURE

    kwargs = {"poll_interval_ms": config.polling.interval_ms}
    if sleep is not None:
        kwargs["sleep"] = sleep

    try:
        with opened(transport, config.device.vendor_id, config.device.focuser_product_id):
            controller = FocuserMoveController(FocuserDriver(transport), **kwargs)
            status = controller.query()
            if target is None:
                return EXIT_OK
            controller.move(target, current=status)
            return EXIT_OK
    except ZwoAccessoryException as e:
        print(e, file=sys.stderr)
        return EXIT_FAILURE
    finally:
        _log_protocol_stats()


def run_filter_wheel(
    config: AppConfig,
    transport: HidTransportInterface,
    slot: Optional[str],
    sleep=None,
) -> int:
    """
    Move the filter wheel to a slot (or just report the current one).

    Args:
        config: Application configuration.
        transport: Real or simulated transport (opened and closed here).
        slot: Raw slot argument, or None for no change.
        sleep: Optional sleep override for the polling loop.

    Returns:
        Process exit status.
    """
    target = None
    if slot is not None:
        try:
            target = parse_slot(slot, EFW_SLOT_COUNT)
        except ZwoAccessoryException as e:
            print(e, file=sys.stderr)
            return EXIT_FAILURE

    kwargs = {
        "poll_interval_ms": config.polling.interval_ms,
        "step_attempts": config.polling.wheel_step_attempts,
    }
    if sleep is not None:
        kwargs["sleep"] = sleep

    try:
        with opened(transport, config.device.vendor_id, config.device.wheel_product_id):
            controller = FilterWheelMoveController(FilterWheelDriver(transport), **kwargs)
            controller.identify()
            controller.move(target)
            return EXIT_OK
    except ZwoAccessoryException as e:
        print(e, file=sys.stderr)
        return EXIT_FAILURE
    finally:
        _log_protocol_stats()


def _interrupted(func, *args) -> int:
    try:
        return func(*args)
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return EXIT_FAILURE


def focuser_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for zwoeaf-set."""
    parser = _build_parser(
        "zwoeaf-set",
        "Report or set the position of a ZWO EAF focuser",
        "position",
        "Absolute position, or +N/-N relative to the current position",
    )
    args = parser.parse_args(argv)

    config = _prepare(args)
    if config is None:
        return EXIT_FAILURE

    transport = MockFocuserDevice(config.simulator) if args.simulate else HidTransport()
    return _interrupted(run_focuser, config, transport, args.position)


def wheel_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for zwoefw-set."""
    parser = _build_parser(
        "zwoefw-set",
        "Report or set the slot of a ZWO EFW filter wheel",
        "slot",
        f"Target slot 1-{EFW_SLOT_COUNT} (default: stay on the current slot)",
    )
    args = parser.parse_args(argv)

    config = _prepare(args)
    if config is None:
        return EXIT_FAILURE

    transport = MockFilterWheelDevice(config.simulator) if args.simulate else HidTransport()
    return _interrupted(run_filter_wheel, config, transport, args.slot)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``python -m zwo_accessory {focuser,wheel} ...``."""
    argv = list(sys.argv[1:] if argv is None else argv)
    tools = {"focuser": focuser_main, "wheel": wheel_main}

    if not argv or argv[0] not in tools:
        print("usage: python -m zwo_accessory {focuser,wheel} [options] [target]", file=sys.stderr)
        return EXIT_FAILURE

    return tools[argv[0]](argv[1:])
