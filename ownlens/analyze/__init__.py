# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compiler-side analysis: function body + solver relations → `Function` records.

Pipeline placement:
  FunctionInput (body, relations, source) → FactAdapter → FunctionAnalyzer
  → AnalysisSession (worker pool) → Workspace JSON lines

Public API:
  - FunctionInput / load_function_inputs: per-function input documents
  - LocationTable / RichLocation: solver point numbering
  - FactAdapter: relations → per-local ranges
  - FunctionAnalyzer: one Function record per input
  - AnalysisSession / analyze_unit: concurrent per-unit driver
"""

from .location_table import LocationTable, Phase, RichLocation
from .inputs import FunctionInput, load_function_inputs
from .adapter import FactAdapter
from .analyzer import FunctionAnalyzer
from .driver import AnalysisFailure, AnalysisSession, SessionOptions, analyze_function, analyze_unit

__all__ = [
	"LocationTable",
	"Phase",
	"RichLocation",
	"FunctionInput",
	"load_function_inputs",
	"FactAdapter",
	"FunctionAnalyzer",
	"AnalysisFailure",
	"AnalysisSession",
	"SessionOptions",
	"analyze_function",
	"analyze_unit",
]
