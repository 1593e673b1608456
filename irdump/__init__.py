# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
irdump: parser for textual IR dumps of decompiled functions.

Packages:
  core:   span + diagnostic records
  parser: grammar, AST, and the batch driver helpers
"""

__all__ = ["core", "parser"]
