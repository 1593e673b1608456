# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to diagnostics.

A Span carries optional file/line/column info plus whatever location object
the parser produced (`raw`), so renderers can recover the byte offset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column plus the raw parser location."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	offset: Optional[int] = None
	raw: Any = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a parser location (`Located`) or another Span.

		Missing fields stay None; `file` overrides whatever the location has.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			return loc if file is None else cls(file, loc.line, loc.column, loc.offset, loc.raw)
		return cls(
			file=file or getattr(loc, "file", None),
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			offset=getattr(loc, "offset", None),
			raw=loc,
		)

	def render(self) -> str:
		"""`file:line:column`, with `?` for unknown parts."""
		line = "?" if self.line is None else self.line
		column = "?" if self.column is None else self.column
		return f"{self.file or '<input>'}:{line}:{column}"


__all__ = ["Span"]
