"""
Message flag packing and validation.

An encoded message carries a 64-bit payload shifted left by six bits, with
six boolean flags XOR-ed into the freed low bits:

    packed = (payload << 6) ^ flag_bits        (70-bit field)

Flag masks, highest first: flag1 = 32, flag2 = 16, ..., flag6 = 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from secretmessages.errors import PayloadOverflow

PAYLOAD_BITS = 64
FLAG_BITS = 6
PACKED_BITS = PAYLOAD_BITS + FLAG_BITS

MAX_PAYLOAD = (1 << PAYLOAD_BITS) - 1
FLAG_MASKS = (32, 16, 8, 4, 2, 1)


def validate_flags(
    flag1: bool,
    flag2: bool,
    flag3: bool,
    flag4: bool,
    flag5: bool,
    flag6: bool,
) -> bool:
    """
    Check the structural constraints between flags.

    - If flag 2 is true, flag 3 must also be true.
    - If flag 4 is true, flags 5 and 6 must both be false.

    flag1 is reserved and unconstrained.
    """
    cond1 = (not flag2) or flag3
    cond2 = (not flag4) or (not flag5 and not flag6)
    return cond1 and cond2


@dataclass(frozen=True)
class FlagSet:
    """Six message flags, flag1 being the most significant bit."""

    flag1: bool = False
    flag2: bool = False
    flag3: bool = False
    flag4: bool = False
    flag5: bool = False
    flag6: bool = False

    def as_tuple(self) -> Tuple[bool, bool, bool, bool, bool, bool]:
        return (self.flag1, self.flag2, self.flag3, self.flag4, self.flag5, self.flag6)

    def to_bits(self) -> int:
        bits = 0
        for flag, mask in zip(self.as_tuple(), FLAG_MASKS):
            if flag:
                bits |= mask
        return bits

    @classmethod
    def from_bits(cls, bits: int) -> "FlagSet":
        """Extract flags from the low six bits; higher bits are ignored."""
        return cls(*(bits & mask == mask for mask in FLAG_MASKS))

    def is_valid(self) -> bool:
        return validate_flags(*self.as_tuple())


def build_flags(value: int) -> FlagSet:
    """Read the six flags from the low bits of ``value``."""
    return FlagSet.from_bits(value)


def _flag_bits(flags: Union[int, FlagSet]) -> int:
    if isinstance(flags, FlagSet):
        return flags.to_bits()
    if flags < 0 or flags >= 1 << FLAG_BITS:
        raise ValueError(f"Flags must fit {FLAG_BITS} bits, got {flags}")
    return flags


def encode(payload: int, flags: Union[int, FlagSet]) -> int:
    """
    Pack a payload and flags into a single integer.

    Raises:
        PayloadOverflow: if the payload is negative or does not fit 64 bits
        ValueError: if integer flags do not fit 6 bits
    """
    if payload < 0 or payload > MAX_PAYLOAD:
        raise PayloadOverflow(f"Payload does not fit {PAYLOAD_BITS} bits: {payload}")
    return (payload << FLAG_BITS) ^ _flag_bits(flags)


def decode(packed: int) -> Tuple[int, FlagSet]:
    """
    Split a packed message into its payload and flags.

    Raises:
        PayloadOverflow: if the packed value does not fit 70 bits
    """
    if packed < 0 or packed.bit_length() > PACKED_BITS:
        raise PayloadOverflow(f"Encoded message does not fit {PACKED_BITS} bits: {packed}")
    return packed >> FLAG_BITS, FlagSet.from_bits(packed)
