"""
Move targets and their resolution against the last settled position.
"""

import re
from dataclasses import dataclass

from zwo_accessory.utils.exceptions import ArgumentError, TargetOutOfRangeError


TARGET_PATTERN = re.compile(r"^([+-]?)([0-9]+)$")
ARGUMENT_LIMIT = 0xFFFF


@dataclass(frozen=True)
class MoveTarget:
    """
    Absolute position, or a signed delta from the current position.

    Attributes:
        value: Absolute position, or the signed delta when relative.
        relative: True for "+N"/"-N" arguments.
    """
    value: int
    relative: bool = False

    @classmethod
    def absolute(cls, value: int) -> "MoveTarget":
        return cls(value, relative=False)

    @classmethod
    def delta(cls, value: int) -> "MoveTarget":
        return cls(value, relative=True)

    def resolve(self, current: int, maximum: int) -> int:
        """
        Resolve to an absolute position.

        Args:
            current: Last settled position.
            maximum: Device maximum position.

        Raises:
            TargetOutOfRangeError: If the result is outside [0, maximum].
        """
        target = current + self.value if self.relative else self.value
        if target < 0 or target > maximum:
            raise TargetOutOfRangeError(f"invalid target {target} (valid 0-{maximum})")
        return target


def parse_target(text: str) -> MoveTarget:
    """
    Parse a focuser position argument.

    ``"1200"`` is absolute, ``"+30"``/``"-30"`` relative. The magnitude must
    fit in 16 bits; the device maximum is checked later, in resolve().

    Raises:
        ArgumentError: If text is malformed or out of range.
    """
    match = TARGET_PATTERN.fullmatch(text)
    if not match:
        raise ArgumentError(f"invalid position requested: {text!r}")

    sign, digits = match.groups()
    magnitude = int(digits)
    if magnitude > ARGUMENT_LIMIT:
        raise ArgumentError(f"invalid position requested: {text!r} (0-{ARGUMENT_LIMIT})")

    if not sign:
        return MoveTarget.absolute(magnitude)
    return MoveTarget.delta(-magnitude if sign == "-" else magnitude)


def parse_slot(text: str, slot_count: int) -> int:
    """
    Parse a filter wheel slot argument (1-based).

    Raises:
        ArgumentError: If text is not an integer in [1, slot_count].
    """
    try:
        slot = int(text)
    except ValueError:
        raise ArgumentError(f"invalid filter slot requested: {text!r}")

    if slot < 1 or slot > slot_count:
        raise ArgumentError(f"invalid filter slot requested: {slot} (1-{slot_count})")
    return slot
