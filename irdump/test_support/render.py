# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reference renderer: AST -> dump text, for round-trip tests only.

The output follows the dump grammar closely enough to be re-parsed; it is not
a canonical serializer (calls always render in the direct `CALL` form and a
scalar RefSpec renders as no qualifier).
"""

from __future__ import annotations

from typing import List

from irdump.parser import ast as A


def render_operand(op: A.Operand) -> str:
	if isinstance(op, A.ValueRef):
		return f"%{op.index}"
	if isinstance(op, A.Const):
		return f"#x{op.value:x}"
	raise TypeError(f"not an operand: {op!r}")


def render_new_value(nv: A.NewValue) -> str:
	ref = {A.RefSpec.SCALAR: "", A.RefSpec.REFERENCE: "(*)", A.RefSpec.UNKNOWN: "(*?)"}[nv.type.ref]
	return f"%{nv.value.index}:$Unknown {nv.type.width}{ref}="


def render_expr(expr: A.Expr) -> str:
	if isinstance(expr, A.Infix):
		return f"{render_operand(expr.lhs)} {expr.op.value} {render_operand(expr.rhs)}"
	if isinstance(expr, A.Prefix):
		return f"{expr.op.value}{render_operand(expr.operand)}"
	if isinstance(expr, A.Load):
		return f"Load({render_operand(expr.mem)}, {render_operand(expr.addr)})"
	if isinstance(expr, A.Store):
		return f"Store({render_operand(expr.mem)}, {render_operand(expr.addr)}, {render_operand(expr.value)})"
	if isinstance(expr, A.Resize):
		return f"{expr.kind.value} {expr.width}({render_operand(expr.operand)})"
	raise TypeError(f"not an expression: {expr!r}")


def _op_addr(addr: A.MAddress | None) -> str:
	return "" if addr is None else f"[@{addr}] "


def render_operation(op: A.Operation) -> str:
	if isinstance(op, A.Phi):
		operands = ", ".join(render_operand(o) for o in op.operands)
		return f"{render_new_value(op.value)} Phi({operands});"
	if isinstance(op, A.Assign):
		return f"{_op_addr(op.addr)}{render_new_value(op.value)} {render_expr(op.expr)};"
	if isinstance(op, A.Call):
		rets = ", ".join(render_new_value(r.value) + ("" if r.reg is None else f" ${r.reg}") for r in op.rets)
		args = ", ".join(f"${a.reg}={render_operand(a.value)}" for a in op.args)
		return f"{_op_addr(op.addr)}({rets})=CALL {render_operand(op.callee)} ({args});"
	raise TypeError(f"not an operation: {op!r}")


def render_terminator(term: A.Terminator) -> str:
	if isinstance(term, A.JmpUncond):
		return f"JMP {term.target}"
	if isinstance(term, A.JmpCond):
		return f"JMP IF {render_operand(term.cond)} {term.if_true} ELSE {term.if_false}"
	if isinstance(term, A.JmpIndirect):
		return f"JMP TO {render_operand(term.target)}"
	if isinstance(term, A.Unreachable):
		return "UNREACHABLE"
	raise TypeError(f"not a terminator: {term!r}")


def render_function(func: A.Function) -> str:
	lines: List[str] = [f"define-fun {func.name}(unknown) -> unknown", "{", "\tentry-register-state:"]
	for binding in func.entry_reg_state:
		lines.append(f"\t\t{render_new_value(binding.value)} ${binding.reg};")
	for block in func.basic_blocks:
		lines.append(f"\tbb_{block.addr}(sz 0x{block.size:x}):")
		lines.extend(f"\t\t{render_operation(op)}" for op in block.ops)
		lines.append(f"\t\t{render_terminator(block.term)}")
	if func.exit_node is not None:
		lines.append("\texit-node:")
		lines.extend(f"\t\t{render_operation(op)}" for op in func.exit_node.ops)
	lines.append("\tfinal-register-state:")
	for binding in func.final_reg_state:
		lines.append(f"\t\t${binding.reg} = {render_operand(binding.value)};")
	lines.append("}")
	return "\n".join(lines) + "\n"


__all__ = ["render_function", "render_operation", "render_expr", "render_operand", "render_terminator"]
