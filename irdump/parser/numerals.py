# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Numeral helpers used by the AST builder.

Every numeric field of the dump has a fixed radix: hex for constants,
addresses and block sizes; decimal for widths and value numbers. Values must
fit in 64 bits and widths in 16 bits.
"""

from __future__ import annotations

from typing import Tuple

from .ast import MAddress

U64_MAX = (1 << 64) - 1
U16_MAX = (1 << 16) - 1


class NumeralOverflowError(ValueError):
	"""A syntactically valid numeral does not fit its field."""

	def __init__(self, digits: str, bits: int) -> None:
		shown = digits if len(digits) <= 24 else digits[:20] + "..."
		super().__init__(f"numeral '{shown}' does not fit in {bits} bits")
		self.digits = digits
		self.bits = bits


def parse_numeral(digits: str, radix: int) -> Tuple[int, int]:
	"""
	Convert `digits` (no prefix) in `radix` into `(value, width)`.

	`width` is the bit width the literal was written with: four bits per hex
	digit, or the value's bit length for other radixes (minimum 1).
	Raises NumeralOverflowError if the value exceeds 64 bits or the width
	exceeds 16 bits, and ValueError for digits invalid in `radix`.
	"""
	significant = digits.lstrip("0") or "0"
	# Reject over-long literals before int(), which refuses very long decimals.
	if len(significant) > _max_u64_digits(radix):
		raise NumeralOverflowError(digits, 64)
	value = int(significant, radix)
	if value > U64_MAX:
		raise NumeralOverflowError(digits, 64)
	if radix == 16:
		width = 4 * len(digits)
	else:
		width = max(1, value.bit_length())
	if width > U16_MAX:
		raise NumeralOverflowError(digits, 16)
	return value, width


def _max_u64_digits(radix: int) -> int:
	count = 0
	value = U64_MAX
	while value:
		value //= radix
		count += 1
	return count


def parse_u64(digits: str, radix: int) -> int:
	return parse_numeral(digits, radix)[0]


def parse_width(digits: str) -> int:
	"""Decimal bit-width of a type; must fit in 16 bits."""
	value, _ = parse_numeral(digits, 10)
	if value > U16_MAX:
		raise NumeralOverflowError(digits, 16)
	return value


def parse_maddress(text: str) -> MAddress:
	"""
	Parse `0x<base>.<sub>` (both hex) into an MAddress.

	>>> parse_maddress("0x00401000.0001")
	MAddress(base=4198400, sub=1)
	"""
	if text[:2] in ("0x", "0X"):
		text = text[2:]
	base, sep, sub = text.partition(".")
	if not sep or not base or not sub:
		raise ValueError(f"malformed address '{text}'")
	return MAddress(base=parse_u64(base, 16), sub=parse_u64(sub, 16))


__all__ = [
	"NumeralOverflowError",
	"U16_MAX",
	"U64_MAX",
	"parse_maddress",
	"parse_numeral",
	"parse_u64",
	"parse_width",
]
