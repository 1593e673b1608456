# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST for a single function's IR dump.

Every node is a frozen dataclass and owns its children exclusively; list-like
fields are tuples. Source locations are carried for diagnostics but excluded
from equality, so two parses of the same function text (or of texts that differ
only in layout) compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union


@dataclass(frozen=True)
class Located:
	line: int
	column: int
	offset: Optional[int] = None


def _loc_field():
	return field(default=None, compare=False, repr=False)


@dataclass(frozen=True, order=True)
class MAddress:
	"""
	Machine address of an IR position.

	`base` is the machine instruction address; `sub` distinguishes several IR
	positions mapped onto that instruction. Ordering is lexicographic.
	"""

	base: int
	sub: int

	def __str__(self) -> str:
		return f"0x{self.base:08x}.{self.sub:04x}"


class RefSpec(Enum):
	SCALAR = "scalar"
	REFERENCE = "reference"  # (*)
	UNKNOWN = "unknown"  # (*?)


@dataclass(frozen=True)
class Type:
	"""`$Unknown <width> <refspec>`; the base type name carries no information."""

	width: int
	ref: RefSpec = RefSpec.SCALAR


@dataclass(frozen=True)
class ValueRef:
	"""`%N`: reference to an SSA value by number."""

	index: int


@dataclass(frozen=True)
class Const:
	"""`#x...`: raw unsigned 64-bit literal."""

	value: int


Operand = Union[ValueRef, Const]


@dataclass(frozen=True)
class NewValue:
	"""Binding site: SSA value `value` of type `type` is defined here."""

	value: ValueRef
	type: Type


class PrefixOp(Enum):
	NOT = "!"


class InfixOp(Enum):
	ADD = "+"
	SUB = "-"
	MUL = "*"
	DIV = "/"
	MOD = "%"
	AND = "&"
	OR = "|"
	XOR = "^"
	EQ = "=="
	GT = ">"
	LT = "<"
	LSL = "<<"
	LSR = ">>"


class ResizeType(Enum):
	NARROW = "Narrow"
	SIGN_EXT = "SignExt"
	ZERO_EXT = "ZeroExt"


class Expr:
	"""Right-hand side of an assignment."""


@dataclass(frozen=True)
class Infix(Expr):
	lhs: Operand
	op: InfixOp
	rhs: Operand


@dataclass(frozen=True)
class Prefix(Expr):
	op: PrefixOp
	operand: Operand


@dataclass(frozen=True)
class Load(Expr):
	mem: Operand
	addr: Operand


@dataclass(frozen=True)
class Store(Expr):
	mem: Operand
	addr: Operand
	value: Operand


@dataclass(frozen=True)
class Resize(Expr):
	kind: ResizeType
	width: int
	operand: Operand


@dataclass(frozen=True)
class CallRet:
	"""
	SSA value produced by a call, read back from physical register `reg`.

	`reg` is None when the dump prints the return value without a register.
	"""

	value: NewValue
	reg: Optional[str] = None


@dataclass(frozen=True)
class CallArg:
	"""Actual operand supplied for the formal physical register `reg`."""

	reg: str
	value: Operand


class Operation:
	loc: Optional[Located]

	def defined_values(self) -> Tuple[NewValue, ...]:
		"""SSA values bound by this operation, in textual order."""
		raise NotImplementedError


@dataclass(frozen=True)
class Phi(Operation):
	"""Synthetic phi node; never carries a source address."""

	value: NewValue
	operands: Tuple[Operand, ...]
	loc: Optional[Located] = _loc_field()

	def defined_values(self) -> Tuple[NewValue, ...]:
		return (self.value,)


@dataclass(frozen=True)
class Assign(Operation):
	addr: Optional[MAddress]
	value: NewValue
	expr: Expr
	loc: Optional[Located] = _loc_field()

	def defined_values(self) -> Tuple[NewValue, ...]:
		return (self.value,)


@dataclass(frozen=True)
class Call(Operation):
	"""
	Call operation.

	Direct (`CALL %2 (...)`) and indirect (`CALL *(%2) (...)`) calls build the
	same node: only the callee operand is kept.
	"""

	addr: Optional[MAddress]
	rets: Tuple[CallRet, ...]
	callee: Operand
	args: Tuple[CallArg, ...]
	loc: Optional[Located] = _loc_field()

	def defined_values(self) -> Tuple[NewValue, ...]:
		return tuple(ret.value for ret in self.rets)


class Terminator:
	loc: Optional[Located]

	def successors(self) -> Tuple[MAddress, ...]:
		"""Statically known jump targets (true target first for JmpCond)."""
		return ()


@dataclass(frozen=True)
class JmpUncond(Terminator):
	target: MAddress
	loc: Optional[Located] = _loc_field()

	def successors(self) -> Tuple[MAddress, ...]:
		return (self.target,)


@dataclass(frozen=True)
class JmpCond(Terminator):
	cond: Operand
	if_true: MAddress
	if_false: MAddress
	loc: Optional[Located] = _loc_field()

	def successors(self) -> Tuple[MAddress, ...]:
		return (self.if_true, self.if_false)


@dataclass(frozen=True)
class JmpIndirect(Terminator):
	target: Operand
	loc: Optional[Located] = _loc_field()


@dataclass(frozen=True)
class Unreachable(Terminator):
	loc: Optional[Located] = _loc_field()


@dataclass(frozen=True)
class BasicBlock:
	# addr/size are declarative metadata, not checked against anything.
	addr: MAddress
	size: int
	ops: Tuple[Operation, ...]
	term: Terminator
	loc: Optional[Located] = _loc_field()


@dataclass(frozen=True)
class ExitNode:
	ops: Tuple[Operation, ...]
	loc: Optional[Located] = _loc_field()


@dataclass(frozen=True)
class EntryBinding:
	value: NewValue
	reg: str


@dataclass(frozen=True)
class FinalBinding:
	reg: str
	value: Operand


@dataclass(frozen=True)
class Function:
	"""Parse result and root of ownership for every other node."""

	name: str
	entry_reg_state: Tuple[EntryBinding, ...]
	basic_blocks: Tuple[BasicBlock, ...]
	exit_node: Optional[ExitNode]
	final_reg_state: Tuple[FinalBinding, ...]
	loc: Optional[Located] = _loc_field()

	def operations(self) -> Iterator[Operation]:
		"""All operations: blocks in textual order, then the exit node."""
		for block in self.basic_blocks:
			yield from block.ops
		if self.exit_node is not None:
			yield from self.exit_node.ops

	def blocks_by_addr(self) -> Dict[MAddress, BasicBlock]:
		# Duplicate block addresses are not rejected; the last one wins.
		return {block.addr: block for block in self.basic_blocks}


__all__ = [
	"Assign",
	"BasicBlock",
	"Call",
	"CallArg",
	"CallRet",
	"Const",
	"EntryBinding",
	"ExitNode",
	"Expr",
	"FinalBinding",
	"Function",
	"Infix",
	"InfixOp",
	"JmpCond",
	"JmpIndirect",
	"JmpUncond",
	"Load",
	"Located",
	"MAddress",
	"NewValue",
	"Operand",
	"Operation",
	"Phi",
	"Prefix",
	"PrefixOp",
	"RefSpec",
	"Resize",
	"ResizeType",
	"Store",
	"Terminator",
	"Type",
	"Unreachable",
	"ValueRef",
]
