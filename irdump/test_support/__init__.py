# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Helpers shared by irdump tests (not part of the runtime API)."""

from .render import render_function

__all__ = ["render_function"]
