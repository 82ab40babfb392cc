"""Address decoding.

An address is split into three bit fields, high to low:

    | tag | index | offset |

  offset_bits = log2(block_size)
  index_bits  = log2(set_count)
  tag_bits    = address_width - offset_bits - index_bits

`decode` works on any object exposing `set_count`, `associativity`,
`block_size` and `address_width` (normally a CacheConfig).
"""

from dataclasses import dataclass
from typing import Tuple

from stepcache.core.errors import ConfigError


def is_power_of_two(n) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and n > 0 and (n & (n - 1)) == 0


def log2_exact(n: int, name: str = "value") -> int:
    """Return log2(n) for a positive power of two, else raise ConfigError."""
    if not is_power_of_two(n):
        raise ConfigError(f"{name} must be a positive power of two, got {n!r}")
    return n.bit_length() - 1


def bit_widths(config) -> Tuple[int, int, int]:
    """Return (tag_bits, index_bits, offset_bits) for `config`.

    Raises ConfigError when a dimension is not a power of two or the
    offset and index fields do not fit in the address width.
    """
    log2_exact(config.associativity, "associativity")
    offset_bits = log2_exact(config.block_size, "block_size")
    index_bits = log2_exact(config.set_count, "set_count")
    width = config.address_width
    if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
        raise ConfigError(f"address_width must be a positive integer, got {width!r}")
    tag_bits = width - offset_bits - index_bits
    if tag_bits < 0:
        raise ConfigError(
            f"offset bits ({offset_bits}) + index bits ({index_bits}) exceed address width ({width})"
        )
    return tag_bits, index_bits, offset_bits


@dataclass(frozen=True)
class AddressBreakdown:
    address: int
    tag: int
    index: int
    offset: int
    tag_bits: int
    index_bits: int
    offset_bits: int

    @property
    def address_width(self) -> int:
        return self.tag_bits + self.index_bits + self.offset_bits

    def binary_fields(self) -> Tuple[str, str, str]:
        """Zero-padded (tag, index, offset) bit strings; empty for zero-width fields."""
        return (
            format_binary(self.tag, self.tag_bits),
            format_binary(self.index, self.index_bits),
            format_binary(self.offset, self.offset_bits),
        )


def _field(value: int, start: int, length: int) -> int:
    return (value >> start) & ((1 << length) - 1)


def decode(address: int, config) -> AddressBreakdown:
    tag_bits, index_bits, offset_bits = bit_widths(config)
    return AddressBreakdown(
        address=address,
        tag=_field(address, offset_bits + index_bits, tag_bits),
        index=_field(address, offset_bits, index_bits),
        offset=_field(address, 0, offset_bits),
        tag_bits=tag_bits,
        index_bits=index_bits,
        offset_bits=offset_bits,
    )


def reconstruct_address(tag: int, index: int, config) -> int:
    """Block-aligned address of the block stored under (tag, index)."""
    _, index_bits, offset_bits = bit_widths(config)
    return (tag << (index_bits + offset_bits)) | (index << offset_bits)


def format_binary(value: int, width: int) -> str:
    if width <= 0:
        return ""
    return format(value, "b").zfill(width)


def format_hex(value: int, width: int = 2) -> str:
    return format(value, "X").zfill(width)


__all__ = [
    "AddressBreakdown",
    "bit_widths",
    "decode",
    "format_binary",
    "format_hex",
    "is_power_of_two",
    "log2_exact",
    "reconstruct_address",
]
