# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Core data model and pure helpers shared by the analyzer and the LSP side.
"""

from .errors import OwnlensError, FactFormatError
from .text import Loc, SourceText, index_to_line_char, line_char_to_index
from .ranges import (
	Range,
	common_range,
	common_ranges,
	merge_ranges,
	eliminated_ranges,
	is_super_range,
	erase_superset,
	exclude_ranges,
)
from .models import (
	FnLocal,
	MoveRval,
	BorrowRval,
	StorageLive,
	StorageDead,
	Assign,
	DropTerminator,
	CallTerminator,
	OtherTerminator,
	BasicBlock,
	UserDeclaration,
	OtherDeclaration,
	Function,
	File,
	Crate,
	Workspace,
)
from .visitor import MirVisitor, mir_visit

__all__ = [
	"OwnlensError",
	"FactFormatError",
	"Loc",
	"SourceText",
	"index_to_line_char",
	"line_char_to_index",
	"Range",
	"common_range",
	"common_ranges",
	"merge_ranges",
	"eliminated_ranges",
	"is_super_range",
	"erase_superset",
	"exclude_ranges",
	"FnLocal",
	"MoveRval",
	"BorrowRval",
	"StorageLive",
	"StorageDead",
	"Assign",
	"DropTerminator",
	"CallTerminator",
	"OtherTerminator",
	"BasicBlock",
	"UserDeclaration",
	"OtherDeclaration",
	"Function",
	"File",
	"Crate",
	"Workspace",
	"MirVisitor",
	"mir_visit",
]
