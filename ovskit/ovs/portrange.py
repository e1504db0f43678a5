"""Conversion of inclusive port ranges into value/mask pairs."""

from __future__ import annotations

from dataclasses import dataclass

_MAX_UINT16 = 0xFFFF


class InvalidPortRangeError(ValueError):
    """Raised when a port range is empty, reversed or out of bounds."""

    def __init__(self, message: str = "invalid port range") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class BitRange:
    """A base value with a bitmask applied, matching a block of ports."""

    value: int
    mask: int


@dataclass(frozen=True)
class PortRange:
    """An inclusive range of 16-bit port numbers."""

    start: int = 0
    end: int = 0

    def bitwise_match(self) -> list[BitRange]:
        """Return the value/mask pairs that together match exactly this range."""
        start, end = self.start, self.end
        if start <= 0 or end <= 0:
            raise InvalidPortRangeError()
        if start > _MAX_UINT16 or end > _MAX_UINT16:
            raise InvalidPortRangeError()
        if start > end:
            raise InvalidPortRangeError()

        if start == end:
            return [BitRange(value=start, mask=_MAX_UINT16)]

        # Largest power-of-two window that could fit inside the range.
        window = end - start + 1
        bit_length = window.bit_length() - 1

        range_start, range_end = _get_range(end, bit_length)
        # Shrink until the aligned block fits inside the range.
        while range_end > end:
            bit_length -= 1
            range_start, range_end = _get_range(end, bit_length)

        result: list[BitRange] = []
        if start != range_start:
            result.extend(PortRange(start, range_start - 1).bitwise_match())

        result.append(BitRange(value=range_start, mask=_get_mask(bit_length)))

        if end != range_end:
            result.extend(PortRange(range_end + 1, end).bitwise_match())

        return result


def _get_mask(bit_length: int) -> int:
    return _MAX_UINT16 ^ ((1 << bit_length) - 1)


def _get_range(end: int, bit_length: int) -> tuple[int, int]:
    range_length = ((1 << bit_length) - 1) & _MAX_UINT16
    range_start = end & ~range_length & _MAX_UINT16
    range_end = (range_start + range_length) & _MAX_UINT16
    return range_start, range_end