# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from irdump.parser.ast import MAddress
from irdump.parser.numerals import (
	NumeralOverflowError,
	U64_MAX,
	parse_maddress,
	parse_numeral,
	parse_width,
)


def test_parse_maddress_examples() -> None:
	assert parse_maddress("0x00401000.0001") == MAddress(base=0x401000, sub=1)
	assert parse_maddress("0xabcdef.000a") == MAddress(base=0xABCDEF, sub=10)


def test_maddress_orders_lexicographically() -> None:
	addrs = [MAddress(0x401000, 2), MAddress(0x400000, 9), MAddress(0x401000, 0)]
	assert sorted(addrs) == [MAddress(0x400000, 9), MAddress(0x401000, 0), MAddress(0x401000, 2)]


def test_maddress_str() -> None:
	assert str(MAddress(0x401000, 1)) == "0x00401000.0001"


def test_parse_maddress_rejects_missing_sub() -> None:
	with pytest.raises(ValueError):
		parse_maddress("0x00401000")


def test_parse_numeral_width() -> None:
	assert parse_numeral("2a", 16) == (0x2A, 8)
	assert parse_numeral("0", 10) == (0, 1)
	assert parse_numeral("32", 10) == (32, 6)


def test_parse_numeral_bounds() -> None:
	assert parse_numeral("f" * 16, 16)[0] == U64_MAX
	with pytest.raises(NumeralOverflowError) as excinfo:
		parse_numeral("1" + "0" * 16, 16)
	assert excinfo.value.bits == 64


def test_parse_width_bounds() -> None:
	assert parse_width("65535") == 65535
	with pytest.raises(NumeralOverflowError):
		parse_width("65536")
