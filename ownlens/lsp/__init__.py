# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Editor-side query layer.

  Workspace lines → Backend snapshot (ReadWriteLock) → SelectLocal → CalcDecos
  → handle_overlapping → Decorations payload
"""

from .decoration import CalcDecos, Deco, DecoKind, SelectLocal, SelectReason
from .protocol import AnalysisStatus, CursorRequest, Decorations, Position, uri_to_path
from .rwlock import ReadWriteLock
from .backend import AnalysisRun, Backend, BackendOptions, CommandSource, IterableSource, parse_workspace_line

__all__ = [
	"CalcDecos",
	"Deco",
	"DecoKind",
	"SelectLocal",
	"SelectReason",
	"AnalysisStatus",
	"CursorRequest",
	"Decorations",
	"Position",
	"uri_to_path",
	"ReadWriteLock",
	"AnalysisRun",
	"Backend",
	"BackendOptions",
	"CommandSource",
	"IterableSource",
	"parse_workspace_line",
]
