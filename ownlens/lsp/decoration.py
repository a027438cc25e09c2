# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Cursor-driven decorations.

Two visitors run over the functions of the queried file:

1. `SelectLocal` picks the local the cursor is "on": a declaration, a move or
   borrow site, or a call whose result the local receives.
2. `CalcDecos` expands the selected local into typed intervals (lifetime,
   borrows, moves, calls, shared/mutable conflicts, outlive obligations).

`CalcDecos.handle_overlapping` then makes the set presentable: higher
priority decorations are never cut, lower priority ones are split around
them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, List, Optional, Set, Tuple

from ownlens.core.models import (
	Assign,
	BorrowRval,
	CallTerminator,
	Declaration,
	FnLocal,
	MoveRval,
	Statement,
	Terminator,
	UserDeclaration,
)
from ownlens.core.ranges import (
	Range,
	common_range,
	common_ranges,
	eliminated_ranges,
	exclude_ranges,
	is_super_range,
)
from ownlens.core.text import Loc, index_to_line_char
from ownlens.core.visitor import MirVisitor


class DecoKind(Enum):
	"""Decoration kinds in priority order (later wins on overlap)."""

	LIFETIME = "lifetime"
	IMM_BORROW = "imm_borrow"
	MUT_BORROW = "mut_borrow"
	MOVE = "move"
	CALL = "call"
	SHARED_MUT = "shared_mut"
	OUTLIVE = "outlive"

	@property
	def priority(self) -> int:
		return _PRIORITY[self]


_PRIORITY = {kind: idx for idx, kind in enumerate(DecoKind)}


@dataclass(frozen=True)
class Deco:
	kind: DecoKind
	local: FnLocal
	range: Range
	hover_text: str
	overlapped: bool = False

	@property
	def priority(self) -> int:
		return self.kind.priority

	def to_lsp_dict(self, text: str) -> dict[str, Any]:
		"""Payload form with (line, character) positions in `text`."""
		start = index_to_line_char(text, self.range.from_)
		end = index_to_line_char(text, self.range.until)
		return {
			"type": self.kind.value,
			"local": self.local.to_dict(),
			"range": {
				"start": {"line": start[0], "character": start[1]},
				"end": {"line": end[0], "character": end[1]},
			},
			"hover_text": self.hover_text,
			"overlapped": self.overlapped,
		}


class SelectReason(Enum):
	VAR = "var"
	MOVE = "move"
	BORROW = "borrow"
	CALL = "call"


class SelectLocal(MirVisitor):
	"""
	Picks the most relevant local under the cursor.

	Rules against the current best candidate:
	  - a declaration replaces anything wider;
	  - a selected declaration is never displaced by a move, borrow or call;
	  - a move/borrow replaces anything wider;
	  - between two calls the wider span wins (the enclosing call, not an
	    argument sub-expression);
	  - anything else keeps the current best.
	"""

	def __init__(self, pos: Loc) -> None:
		self.pos = pos
		self._selected: Optional[Tuple[SelectReason, FnLocal, Range]] = None

	def select(self, reason: SelectReason, local: FnLocal, rng: Range) -> None:
		if not rng.contains(self.pos):
			return
		if self._selected is None:
			self._selected = (reason, local, rng)
			return
		old_reason, _old_local, old_range = self._selected
		narrower = rng.size < old_range.size
		if reason is SelectReason.VAR:
			take = narrower
		elif old_reason is SelectReason.VAR:
			take = False
		elif reason in (SelectReason.MOVE, SelectReason.BORROW):
			take = narrower
		elif old_reason is SelectReason.CALL and reason is SelectReason.CALL:
			take = old_range.size < rng.size
		else:
			take = False
		if take:
			self._selected = (reason, local, rng)

	def selected(self) -> Optional[FnLocal]:
		return self._selected[1] if self._selected is not None else None

	def visit_decl(self, decl: Declaration) -> None:
		if isinstance(decl, UserDeclaration):
			self.select(SelectReason.VAR, decl.local, decl.span)

	def visit_stmt(self, stmt: Statement) -> None:
		if not isinstance(stmt, Assign):
			return
		if isinstance(stmt.rval, MoveRval):
			self.select(SelectReason.MOVE, stmt.rval.target_local, stmt.rval.range)
		elif isinstance(stmt.rval, BorrowRval):
			self.select(SelectReason.BORROW, stmt.rval.target_local, stmt.rval.range)

	def visit_term(self, term: Terminator) -> None:
		if isinstance(term, CallTerminator):
			self.select(SelectReason.CALL, term.destination_local, term.fn_span)


class CalcDecos(MirVisitor):
	"""Collects the decorations of the selected locals."""

	def __init__(self, locals_: Iterable[FnLocal]) -> None:
		self.locals: Set[FnLocal] = set(locals_)
		self._decorations: List[Deco] = []

	def _push(self, kind: DecoKind, local: FnLocal, rng: Range, hover_text: str) -> None:
		self._decorations.append(Deco(kind, local, rng, hover_text))

	def visit_decl(self, decl: Declaration) -> None:
		local = decl.local
		if local not in self.locals:
			return
		name = decl.display_name
		var_str = f"variable `{name}`" if name is not None else "anonymous variable"
		# a Drop value stays alive until its drop glue has run
		drop_copy_live = eliminated_ranges(list(decl.lives) + list(decl.drop_range))
		for rng in drop_copy_live:
			self._push(DecoKind.LIFETIME, local, rng, f"lifetime of {var_str}")
		for rng in common_ranges(list(decl.shared_borrow) + list(decl.mutable_borrow)):
			self._push(DecoKind.SHARED_MUT, local, rng, f"immutable and mutable borrows of {var_str} exist here")
		for rng in exclude_ranges(decl.must_live_at, drop_copy_live):
			self._push(DecoKind.OUTLIVE, local, rng, f"{var_str} is required to live here")

	def visit_stmt(self, stmt: Statement) -> None:
		if not isinstance(stmt, Assign) or stmt.rval is None:
			return
		rval = stmt.rval
		if rval.target_local not in self.locals:
			return
		if isinstance(rval, MoveRval):
			self._push(DecoKind.MOVE, rval.target_local, rval.range, "variable moved")
		elif rval.mutable:
			self._push(DecoKind.MUT_BORROW, rval.target_local, rval.range, "mutable borrow")
		else:
			self._push(DecoKind.IMM_BORROW, rval.target_local, rval.range, "immutable borrow")

	def visit_term(self, term: Terminator) -> None:
		if not isinstance(term, CallTerminator) or term.destination_local not in self.locals:
			return
		span = term.fn_span
		for deco in self._decorations:
			if deco.kind is DecoKind.CALL and (deco.range == span or is_super_range(deco.range, span)):
				# an enclosing call is already shown
				return
		self._decorations = [
			d for d in self._decorations if not (d.kind is DecoKind.CALL and is_super_range(span, d.range))
		]
		self._push(DecoKind.CALL, term.destination_local, span, "function call")

	def handle_overlapping(self) -> None:
		"""
		Split lower-priority decorations around higher-priority ones.

		Decorations are processed in priority order. When one intersects an
		earlier, not yet overlapped decoration, the earlier one shrinks to the
		intersection (flagged `overlapped`) and its parts outside the
		intersection come back as fresh decorations of the same kind.

		Decorations that share only a boundary position have no common range
		and are left as they are, so both cover that position.
		"""
		ordered = sorted(self._decorations, key=lambda d: d.priority)
		resolved: List[Deco] = []
		for current in ordered:
			step: List[Deco] = []
			for prev in resolved:
				if prev.overlapped:
					step.append(prev)
					continue
				common = common_range(current.range, prev.range)
				if common is None:
					step.append(prev)
					continue
				step.append(replace(prev, range=common, overlapped=True))
				for rng in exclude_ranges([prev.range], [common]):
					step.append(replace(prev, range=rng, overlapped=False))
			step.append(current)
			resolved = step
		self._decorations = resolved

	def decorations(self) -> List[Deco]:
		return list(self._decorations)


__all__ = ["DecoKind", "Deco", "SelectReason", "SelectLocal", "CalcDecos"]
