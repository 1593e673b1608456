# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Driver-side entry points for IR dumps.

`parser.parse_function` handles exactly one function and raises on the first
error. The helpers here accept whole dumps (any number of `define-fun`
functions), parse each function independently, and report failures as
Diagnostics so one malformed function does not hide the rest.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

from irdump.core.diagnostics import Diagnostic
from irdump.core.span import Span

from . import ast
from .ast import Function, Located
from .parser import IrLexicalError, IrParseError, IrSyntaxError, parse_function

logger = logging.getLogger(__name__)

_HEADER_LINE = re.compile(r"^[ \t]*define-fun\b", re.MULTILINE)
_HEADER_NAME = re.compile(r"define-fun ([A-Za-z0-9_.]+)\(")
_BLANK_OR_COMMENTS = re.compile(r"^(?:\s|\{[^}\n]*\})*$")


class Chunk(NamedTuple):
	"""Source text of one function plus where it starts in the whole dump."""

	offset: int
	line: int
	text: str


def split_functions(text: str) -> List[Chunk]:
	"""
	Split a dump at every line starting with `define-fun`.

	Text before the first header is returned as its own chunk unless it is
	blank or consists only of comments, so stray input still gets parsed (and
	reported) rather than silently dropped.
	"""
	starts = [m.start() for m in _HEADER_LINE.finditer(text)]
	if not starts or starts[0] != 0:
		starts.insert(0, 0)
	chunks: List[Chunk] = []
	for idx, start in enumerate(starts):
		end = starts[idx + 1] if idx + 1 < len(starts) else len(text)
		body = text[start:end]
		if _BLANK_OR_COMMENTS.match(body):
			continue
		chunks.append(Chunk(offset=start, line=text.count("\n", 0, start) + 1, text=body))
	return chunks


def parse_ir_text(text: str, *, file: Optional[str] = None) -> Tuple[List[Function], List[Diagnostic]]:
	"""
	Parse every function in `text`.

	Returns the successfully parsed functions in textual order plus one
	parser-phase Diagnostic per function that failed. Never raises for
	malformed input.
	"""
	functions: List[Function] = []
	diagnostics: List[Diagnostic] = []
	for chunk in split_functions(text):
		logger.debug("parsing function chunk at line %d (%d chars)", chunk.line, len(chunk.text))
		try:
			functions.append(parse_function(chunk.text))
		except IrParseError as err:
			name_match = _HEADER_NAME.match(chunk.text.lstrip())
			diag = Diagnostic(
				message=str(err),
				phase="parser",
				severity="error",
				span=Span.from_loc(_rebase(err.loc, chunk), file=file),
				function=name_match.group(1) if name_match else None,
			)
			logger.warning("%s: %s", diag.span.render(), diag.message)
			diagnostics.append(diag)
	return functions, diagnostics


def parse_ir_file(path: Path) -> Tuple[List[Function], List[Diagnostic]]:
	"""Read `path` and parse every function in it (see parse_ir_text)."""
	return parse_ir_text(path.read_text(), file=str(path))


def _rebase(loc: Located, chunk: Chunk) -> Located:
	# Chunks always start at column 1, so only line and offset shift.
	offset = None if loc.offset is None else chunk.offset + loc.offset
	return Located(line=chunk.line + loc.line - 1, column=loc.column, offset=offset)


__all__ = [
	"Chunk",
	"IrLexicalError",
	"IrParseError",
	"IrSyntaxError",
	"ast",
	"parse_function",
	"parse_ir_file",
	"parse_ir_text",
	"split_functions",
]
