"""
Diagnostic record produced by the batch driver.

Parse failures are reported as data rather than exceptions once they leave
the driver, so one malformed function does not hide the others in a dump.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from .span import Span


@dataclass
class Diagnostic:
	"""A parser (or driver) error/warning."""

	message: str
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Span() denotes unknown.
	# Name of the function the diagnostic belongs to, when the header parsed.
	function: str | None = None

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def to_json(self) -> Dict[str, Any]:
		return {
			"phase": self.phase,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"function": self.function,
		}


__all__ = ["Diagnostic"]
