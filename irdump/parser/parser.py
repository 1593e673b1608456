# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
IR dump parser: text of one function -> `ast.Function`.

Lark produces the parse tree (grammar.lark); the `_build_*` functions below
walk it bottom-up, one per AST node kind. Lark's own exceptions never leave
`parse_function`: they are translated into `IrLexicalError` /
`IrSyntaxError`, both carrying the failure location.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional, TypeVar

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken
from lark.lexer import PatternStr

from .ast import (
	Assign,
	BasicBlock,
	Call,
	CallArg,
	CallRet,
	Const,
	EntryBinding,
	ExitNode,
	Expr,
	FinalBinding,
	Function,
	Infix,
	InfixOp,
	JmpCond,
	JmpIndirect,
	JmpUncond,
	Load,
	Located,
	MAddress,
	NewValue,
	Operand,
	Operation,
	Phi,
	Prefix,
	PrefixOp,
	RefSpec,
	Resize,
	ResizeType,
	Store,
	Terminator,
	Type,
	Unreachable,
	ValueRef,
)
from .numerals import NumeralOverflowError, parse_maddress, parse_u64, parse_width

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

# "define-fun " and "(unknown) -> unknown" wrap the function name in the
# FUNC_HEADER token; both are fixed parts of the format.
_FUNC_HEADER_PREFIX_LEN = 11
_FUNC_HEADER_SUFFIX_LEN = 20
# BLOCK_SIZE is "(sz 0x" <hex> ")".
_BLOCK_SIZE_PREFIX_LEN = 6

_END_OF_INPUT = "<end of input>"

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="contextual",
	start="function",
	propagate_positions=True,
	maybe_placeholders=False,
)


class IrParseError(ValueError):
	"""
	Base class for parse failures of one function.

	`loc` is the failure position (line/column are 1-based, offset is the
	0-based character offset into the parsed text).
	"""

	def __init__(self, message: str, *, loc: Located) -> None:
		super().__init__(message)
		self.loc = loc


class IrLexicalError(IrParseError):
	"""Input at `loc` matches no token."""

	def __init__(self, *, loc: Located, char: str = "") -> None:
		where = f"line {loc.line} column {loc.column}"
		if loc.offset is not None:
			where += f" (offset {loc.offset})"
		super().__init__(f"unrecognized input at {where}" + (f": {char!r}" if char else ""), loc=loc)
		self.char = char


class IrSyntaxError(IrParseError):
	"""A rule found `found` where it expected one of `expected`."""

	def __init__(
		self,
		*,
		loc: Located,
		expected: Iterable[str],
		found: str,
		message: Optional[str] = None,
	) -> None:
		self.expected: FrozenSet[str] = frozenset(expected)
		self.found = found
		if message is None:
			message = (
				f"unexpected token {found} at line {loc.line} column {loc.column}, "
				f"expected one of {{{', '.join(sorted(self.expected))}}}"
			)
		super().__init__(message, loc=loc)


def parse_function(source: str) -> Function:
	"""
	Parse the text of exactly one function (including its `define-fun ... {}`
	envelope) into a Function.

	Raises IrLexicalError / IrSyntaxError on the first problem; nothing is
	returned for malformed input.
	"""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		raise _translate_error(err, source) from err
	func = _build_function(tree)
	logger.debug("parsed function %s: %d blocks", func.name, len(func.basic_blocks))
	return func


def _translate_error(err: UnexpectedInput, source: str) -> IrParseError:
	if isinstance(err, UnexpectedCharacters):
		loc = Located(line=err.line, column=err.column, offset=err.pos_in_stream)
		char = source[err.pos_in_stream] if 0 <= err.pos_in_stream < len(source) else ""
		return IrLexicalError(loc=loc, char=char)
	if isinstance(err, UnexpectedToken):
		token = err.token
		if token.type == "$END":
			loc = _end_loc(source)
			found = _END_OF_INPUT
		else:
			loc = _loc_from_token(token)
			found = repr(token.value)
		return IrSyntaxError(loc=loc, expected=_describe_terminals(err.expected), found=found)
	if isinstance(err, UnexpectedEOF):
		return IrSyntaxError(loc=_end_loc(source), expected=_describe_terminals(err.expected), found=_END_OF_INPUT)
	# Any other lark input error still maps onto a positioned syntax error.
	loc = Located(line=getattr(err, "line", 0) or 0, column=getattr(err, "column", 0) or 0)
	return IrSyntaxError(loc=loc, expected=(), found="?", message=str(err))


def _describe_terminals(names: Iterable[str]) -> List[str]:
	"""Terminal names -> quoted literals for fixed strings, names otherwise."""
	out: List[str] = []
	ignored = set(getattr(_PARSER, "ignore_tokens", ()))
	for name in names:
		if name in ignored:
			continue
		if name == "$END":
			out.append(_END_OF_INPUT)
			continue
		try:
			term = _PARSER.get_terminal(name)
		except KeyError:
			out.append(name)
			continue
		if isinstance(term.pattern, PatternStr):
			out.append(repr(term.pattern.value))
		else:
			out.append(name)
	return out


def _end_loc(source: str) -> Located:
	line = source.count("\n") + 1
	column = len(source) - (source.rfind("\n") + 1) + 1
	return Located(line=line, column=column, offset=len(source))


def _build_function(tree: Tree) -> Function:
	header = tree.children[0]
	name = header.value[_FUNC_HEADER_PREFIX_LEN:-_FUNC_HEADER_SUFFIX_LEN]
	entry_state: tuple = ()
	final_state: tuple = ()
	blocks: List[BasicBlock] = []
	exit_node: Optional[ExitNode] = None
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "entry_reg_state":
			entry_state = tuple(_build_entry_binding(b) for b in _subtrees(child))
		elif kind == "basic_block":
			blocks.append(_build_basic_block(child))
		elif kind == "exit_node":
			exit_node = ExitNode(ops=tuple(_build_operation(op) for op in _subtrees(child)), loc=_loc(child))
		elif kind == "final_reg_state":
			final_state = tuple(_build_final_binding(b) for b in _subtrees(child))
	return Function(
		name=name,
		entry_reg_state=entry_state,
		basic_blocks=tuple(blocks),
		exit_node=exit_node,
		final_reg_state=final_state,
		loc=_loc_from_token(header),
	)


def _build_entry_binding(tree: Tree) -> EntryBinding:
	new_value, reg = tree.children
	return EntryBinding(value=_build_new_value(new_value), reg=_phys_reg(reg))


def _build_final_binding(tree: Tree) -> FinalBinding:
	reg, operand = tree.children
	return FinalBinding(reg=_phys_reg(reg), value=_build_operand(operand))


def _build_basic_block(tree: Tree) -> BasicBlock:
	addr_tok, size_tok = tree.children[0], tree.children[1]
	rest = [child for child in tree.children[2:] if isinstance(child, Tree)]
	ops = tuple(_build_operation(op) for op in rest[:-1])
	size_digits = size_tok.value[_BLOCK_SIZE_PREFIX_LEN:-1]
	return BasicBlock(
		addr=_address(addr_tok),
		size=_numeral(size_tok, lambda: parse_u64(size_digits, 16)),
		ops=ops,
		term=_build_terminator(rest[-1]),
		loc=_loc(tree),
	)


def _build_terminator(tree: Tree) -> Terminator:
	kind = _name(tree)
	loc = _loc(tree)
	children = tree.children
	if kind == "jmp_uncond":
		return JmpUncond(target=_address(children[0]), loc=loc)
	if kind == "jmp_cond":
		cond, if_true, if_false = children
		return JmpCond(cond=_build_operand(cond), if_true=_address(if_true), if_false=_address(if_false), loc=loc)
	if kind == "jmp_indirect":
		return JmpIndirect(target=_build_operand(children[0]), loc=loc)
	if kind == "unreachable":
		return Unreachable(loc=loc)
	raise ValueError(f"unexpected terminator node {kind}")


def _build_operation(tree: Tree) -> Operation:
	inner = tree.children[0]
	kind = _name(inner)
	loc = _loc(tree)
	if kind == "phi_op":
		new_value, *operands = inner.children
		return Phi(
			value=_build_new_value(new_value),
			operands=tuple(_build_operand(op) for op in operands),
			loc=loc,
		)
	children = list(inner.children)
	addr: Optional[MAddress] = None
	if _name(children[0]) == "op_addr":
		addr = _address(children.pop(0).children[0])
	if kind == "assign_op":
		new_value, expr = children
		return Assign(addr=addr, value=_build_new_value(new_value), expr=_build_expr(expr), loc=loc)
	if kind == "call_op":
		rets, callee, args = children
		return Call(
			addr=addr,
			rets=tuple(_build_call_ret(ret) for ret in rets.children),
			callee=_build_operand(callee),
			args=tuple(_build_call_arg(arg) for arg in args.children),
			loc=loc,
		)
	raise ValueError(f"unexpected operation node {kind}")


def _build_call_ret(tree: Tree) -> CallRet:
	new_value, *reg = tree.children
	return CallRet(value=_build_new_value(new_value), reg=_phys_reg(reg[0]) if reg else None)


def _build_call_arg(tree: Tree) -> CallArg:
	reg, operand = tree.children
	return CallArg(reg=_phys_reg(reg), value=_build_operand(operand))


def _build_expr(tree: Tree) -> Expr:
	kind = _name(tree)
	children = tree.children
	if kind == "infix":
		lhs, op, rhs = children
		return Infix(lhs=_build_operand(lhs), op=InfixOp(op.children[0].value), rhs=_build_operand(rhs))
	if kind == "prefix":
		op, operand = children
		return Prefix(op=PrefixOp(op.children[0].value), operand=_build_operand(operand))
	if kind == "load":
		mem, addr = children
		return Load(mem=_build_operand(mem), addr=_build_operand(addr))
	if kind == "store":
		mem, addr, value = children
		return Store(mem=_build_operand(mem), addr=_build_operand(addr), value=_build_operand(value))
	if kind == "resize":
		resize_type, width, operand = children
		return Resize(
			kind=ResizeType(resize_type.children[0].value),
			width=_numeral(width, lambda: parse_width(width.value)),
			operand=_build_operand(operand),
		)
	raise ValueError(f"unexpected expression node {kind}")


def _build_new_value(tree: Tree) -> NewValue:
	value_tok, type_node = tree.children
	return NewValue(value=_value_ref(value_tok), type=_build_type(type_node))


def _build_type(tree: Tree) -> Type:
	width_tok = tree.children[0]
	ref = RefSpec.SCALAR
	if len(tree.children) > 1:
		ref_kind = _name(tree.children[1])
		ref = RefSpec.REFERENCE if ref_kind == "ref_reference" else RefSpec.UNKNOWN
	return Type(width=_numeral(width_tok, lambda: parse_width(width_tok.value)), ref=ref)


def _build_operand(tree: Tree) -> Operand:
	token = tree.children[0]
	if token.type == "VALUE_REF":
		return _value_ref(token)
	return Const(value=_numeral(token, lambda: parse_u64(token.value[2:], 16)))


def _value_ref(token: Token) -> ValueRef:
	return ValueRef(index=_numeral(token, lambda: parse_u64(token.value[1:], 10)))


def _phys_reg(token: Token) -> str:
	return token.value[1:]


def _address(token: Token) -> MAddress:
	return _numeral(token, lambda: parse_maddress(token.value))


T = TypeVar("T")


def _numeral(token: Token, convert: Callable[[], T]) -> T:
	"""Run a numeral conversion, reporting overflow at the token's position."""
	try:
		return convert()
	except NumeralOverflowError as err:
		raise IrSyntaxError(
			loc=_loc_from_token(token),
			expected=[f"{token.type} fitting in {err.bits} bits"],
			found=repr(token.value),
			message=f"{err} at line {token.line} column {token.column}",
		) from err


def _subtrees(tree: Tree) -> List[Tree]:
	return [child for child in tree.children if isinstance(child, Tree)]


def _loc(tree: Tree) -> Optional[Located]:
	meta = tree.meta
	if meta.empty:
		return None
	return Located(line=meta.line, column=meta.column, offset=meta.start_pos)


def _loc_from_token(token: Token) -> Located:
	return Located(line=token.line, column=token.column, offset=token.start_pos)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = [
	"IrLexicalError",
	"IrParseError",
	"IrSyntaxError",
	"parse_function",
]
