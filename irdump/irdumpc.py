# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
irdumpc: parse IR dump files and report what was recognized.

Each input may hold any number of `define-fun` functions. Every function is
parsed independently; failures are printed as `file:line:column: error: ...`
(or as JSON with --json) and make the exit code 1.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from irdump.core.diagnostics import Diagnostic
from irdump.core.span import Span
from irdump.parser import parse_ir_file, parse_ir_text
from irdump.parser.ast import Function

logger = logging.getLogger(__name__)


def _summarize(func: Function) -> Dict[str, Any]:
	return {
		"name": func.name,
		"blocks": len(func.basic_blocks),
		"ops": sum(1 for _ in func.operations()),
		"exit_node": func.exit_node is not None,
		"entry_regs": [b.reg for b in func.entry_reg_state],
		"final_regs": [b.reg for b in func.final_reg_state],
	}


def _configure_logging(verbosity: int) -> None:
	level = logging.WARNING
	if verbosity == 1:
		level = logging.INFO
	elif verbosity >= 2:
		level = logging.DEBUG
	logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
	"""
	Parse each source and print a per-function summary.

	With --json, prints {"exit_code", "functions", "diagnostics"} to stdout;
	otherwise summaries go to stdout and diagnostics to stderr.
	"""
	parser = argparse.ArgumentParser(description="Parse decompiler IR function dumps")
	parser.add_argument("source", nargs="+", help="IR dump file(s); '-' reads stdin")
	parser.add_argument("--json", action="store_true", help="Emit structured JSON output")
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (repeatable)")
	args = parser.parse_args(argv)
	_configure_logging(args.verbose)

	summaries: List[Dict[str, Any]] = []
	diagnostics: List[Diagnostic] = []
	for source in args.source:
		if source == "-":
			functions, diags = parse_ir_text(sys.stdin.read(), file="<stdin>")
		else:
			path = Path(source)
			try:
				functions, diags = parse_ir_file(path)
			except OSError as err:
				diags = [Diagnostic(message=f"cannot read input: {err.strerror}", phase="driver", span=Span(file=str(path)))]
				functions = []
		logger.info("%s: %d function(s) parsed, %d error(s)", source, len(functions), len(diags))
		summaries.extend(dict(_summarize(f), file=source) for f in functions)
		diagnostics.extend(diags)

	exit_code = 1 if any(d.severity == "error" for d in diagnostics) else 0
	if args.json:
		payload = {
			"exit_code": exit_code,
			"functions": summaries,
			"diagnostics": [d.to_json() for d in diagnostics],
		}
		print(json.dumps(payload))
		return exit_code

	for summary in summaries:
		print(
			f"{summary['name']}: {summary['blocks']} blocks, {summary['ops']} ops, "
			f"exit-node {'yes' if summary['exit_node'] else 'no'}"
		)
	for d in diagnostics:
		print(f"{d.span.render()}: {d.severity}: {d.message}", file=sys.stderr)
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
