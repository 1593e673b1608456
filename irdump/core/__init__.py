# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared span/diagnostic records for the irdump front-end."""

from .diagnostics import Diagnostic
from .span import Span

__all__ = ["Diagnostic", "Span"]
