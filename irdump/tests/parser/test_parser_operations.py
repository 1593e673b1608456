# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from irdump.parser import parser as p
from irdump.parser.ast import (
	Assign,
	Call,
	CallArg,
	CallRet,
	Const,
	Infix,
	InfixOp,
	JmpCond,
	JmpIndirect,
	JmpUncond,
	Load,
	MAddress,
	NewValue,
	Phi,
	Prefix,
	PrefixOp,
	RefSpec,
	Resize,
	ResizeType,
	Store,
	Type,
	Unreachable,
	ValueRef,
)


def _block(body: str, term: str = "UNREACHABLE"):
	src = (
		"define-fun f(unknown) -> unknown {\n"
		"entry-register-state:\n"
		f"bb_0x00401000.0000(sz 0x10):\n{body}\n{term}\n"
		"final-register-state:\n"
		"}\n"
	)
	return p.parse_function(src).basic_blocks[0]


def _single_op(body: str):
	ops = _block(body).ops
	assert len(ops) == 1
	return ops[0]


@pytest.mark.parametrize(
	"text, op",
	[
		("+", InfixOp.ADD),
		("-", InfixOp.SUB),
		("*", InfixOp.MUL),
		("/", InfixOp.DIV),
		("%", InfixOp.MOD),
		("&", InfixOp.AND),
		("|", InfixOp.OR),
		("^", InfixOp.XOR),
		("==", InfixOp.EQ),
		(">", InfixOp.GT),
		("<", InfixOp.LT),
		("<<", InfixOp.LSL),
		(">>", InfixOp.LSR),
	],
)
def test_infix_operators(text: str, op: InfixOp) -> None:
	assign = _single_op(f"%3:$Unknown 32= %1 {text} %2;")
	assert assign.expr == Infix(ValueRef(1), op, ValueRef(2))


def test_infix_operands_keep_order() -> None:
	assign = _single_op("%3:$Unknown 32= #x10 << %2;")
	assert assign.expr == Infix(Const(0x10), InfixOp.LSL, ValueRef(2))


def test_modulo_without_spaces() -> None:
	assign = _single_op("%3:$Unknown 32= %1%%2;")
	assert assign.expr == Infix(ValueRef(1), InfixOp.MOD, ValueRef(2))


def test_prefix_not() -> None:
	assign = _single_op("%2:$Unknown 1= !%1;")
	assert assign.expr == Prefix(PrefixOp.NOT, ValueRef(1))
	assert assign.value == NewValue(ValueRef(2), Type(1))


def test_load_and_store() -> None:
	load, store = _block("%3:$Unknown 32= Load(%1, %2);\n%4:$Unknown 0= Store(%1, %2, #x2a);").ops
	assert load.expr == Load(mem=ValueRef(1), addr=ValueRef(2))
	assert store.expr == Store(mem=ValueRef(1), addr=ValueRef(2), value=Const(0x2A))


@pytest.mark.parametrize(
	"text, kind",
	[("Narrow", ResizeType.NARROW), ("SignExt", ResizeType.SIGN_EXT), ("ZeroExt", ResizeType.ZERO_EXT)],
)
def test_resize(text: str, kind: ResizeType) -> None:
	assign = _single_op(f"%2:$Unknown 8= {text} 8(%1);")
	assert assign.expr == Resize(kind=kind, width=8, operand=ValueRef(1))


def test_assign_with_and_without_address() -> None:
	tagged, plain = _block("[@0x00401000.0001] %2:$Unknown 32= %1 + #x1;\n%3:$Unknown 32= %2 + #x1;").ops
	assert isinstance(tagged, Assign) and tagged.addr == MAddress(0x401000, 1)
	assert isinstance(plain, Assign) and plain.addr is None


def test_address_sub_index_is_hex() -> None:
	assign = _single_op("[@0xabcdef.000a] %2:$Unknown 32= %1 + #x1;")
	assert assign.addr == MAddress(base=0xABCDEF, sub=10)


@pytest.mark.parametrize(
	"suffix, ref",
	[("", RefSpec.SCALAR), ("(*)", RefSpec.REFERENCE), ("(*?)", RefSpec.UNKNOWN)],
)
def test_refspec(suffix: str, ref: RefSpec) -> None:
	assign = _single_op(f"%1:$Unknown 32{suffix}= #x0 + #x0;")
	assert assign.value.type == Type(32, ref)


def test_phi_operands() -> None:
	phi = _single_op("%3:$Unknown 64= Phi(%1, #x0, %2);")
	assert phi == Phi(value=NewValue(ValueRef(3), Type(64)), operands=(ValueRef(1), Const(0), ValueRef(2)))


def test_phi_with_no_operands() -> None:
	phi = _single_op("%3:$Unknown 64= Phi();")
	assert isinstance(phi, Phi)
	assert phi.operands == ()


def test_phi_rejects_address_tag() -> None:
	with pytest.raises(p.IrSyntaxError):
		_block("[@0x00401000.0000] %3:$Unknown 64= Phi(%1);")


def test_direct_and_indirect_calls_are_equal() -> None:
	direct = _single_op("(%1:$Unknown 32=)=CALL %2 ();")
	indirect = _single_op("(%1:$Unknown 32=)=CALL *(%2) ();")
	assert direct == indirect
	assert direct == Call(addr=None, rets=(CallRet(NewValue(ValueRef(1), Type(32))),), callee=ValueRef(2), args=())


def test_call_with_registers_and_arguments() -> None:
	call = _single_op("[@0x00401004.0002] (%5:$Unknown 64= $rax, %6:$Unknown 64(*)= $rdx)=CALL *(%4) ($rdi=%1, $rsi=#x10);")
	assert call.addr == MAddress(0x401004, 2)
	assert call.rets == (
		CallRet(NewValue(ValueRef(5), Type(64)), "rax"),
		CallRet(NewValue(ValueRef(6), Type(64, RefSpec.REFERENCE)), "rdx"),
	)
	assert call.callee == ValueRef(4)
	assert call.args == (CallArg("rdi", ValueRef(1)), CallArg("rsi", Const(0x10)))
	assert [nv.value.index for nv in call.defined_values()] == [5, 6]


def test_call_with_no_returns_or_arguments() -> None:
	call = _single_op("()=CALL #x401200 ();")
	assert call == Call(addr=None, rets=(), callee=Const(0x401200), args=())


@pytest.mark.parametrize(
	"body",
	[
		"(%1:$Unknown 32=,)=CALL %2 ();",
		"()=CALL %2 ($rdi=%1,);",
		"%3:$Unknown 64= Phi(%1,);",
	],
)
def test_trailing_comma_is_rejected(body: str) -> None:
	with pytest.raises(p.IrSyntaxError):
		_block(body)


def test_jmp_uncond() -> None:
	assert _block("", "JMP 0x00401010.0000").term == JmpUncond(MAddress(0x401010, 0))


def test_jmp_cond_keeps_true_false_order() -> None:
	term = _block("", "JMP IF %1 0x401000.0000 ELSE 0x401010.0000").term
	assert term == JmpCond(cond=ValueRef(1), if_true=MAddress(0x401000, 0), if_false=MAddress(0x401010, 0))
	assert term.successors() == (MAddress(0x401000, 0), MAddress(0x401010, 0))


def test_jmp_indirect() -> None:
	term = _block("", "JMP TO %7").term
	assert term == JmpIndirect(ValueRef(7))
	assert term.successors() == ()


def test_unreachable() -> None:
	term = _block("", "UNREACHABLE").term
	assert isinstance(term, Unreachable)
	assert term.successors() == ()


def test_block_requires_terminator() -> None:
	with pytest.raises(p.IrSyntaxError):
		_block("%1:$Unknown 32= %0 + #x1;", "")
