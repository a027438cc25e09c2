# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
ownlens: ownership and lifetime overlays for borrow-checked function bodies.

Packages:
  core:    ranges, source positions, the serialized data model
  analyze: solver facts → per-function declarations and block summaries
  lsp:     cursor-driven decoration selection and the query backend
"""

__version__ = "0.3.0"

__all__ = ["core", "analyze", "lsp"]
