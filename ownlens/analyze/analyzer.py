# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-function analysis: one `Function` record from one `FunctionInput`.

Output:
  - one declaration per local (user-named when debug info names it), with
    live / borrow / drop / must-live ranges from the fact adapter;
  - one block summary per basic block: visible storage and assignment
    statements, and a drop / call / other terminator.

Entry point:
  FunctionAnalyzer(fn_input).analyze() -> (filename, Function)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ownlens.core.models import (
	Assign,
	BasicBlock,
	BorrowRval,
	CallTerminator,
	Declaration,
	DropTerminator,
	FnLocal,
	Function,
	MoveRval,
	OtherDeclaration,
	OtherTerminator,
	Rval,
	Statement,
	StorageDead,
	StorageLive,
	Terminator,
	UserDeclaration,
)
from ownlens.core.ranges import Range
from .adapter import FactAdapter
from .body import MirStatement, MirTerminator, RvalueKind, StatementKind, TerminatorKind
from .inputs import FunctionInput

log = logging.getLogger(__name__)


class FunctionAnalyzer:
	def __init__(self, fn_input: FunctionInput) -> None:
		self.fn_input = fn_input
		self.fn_id = fn_input.fn_id
		self.adapter = FactAdapter(fn_input)

	def _local(self, index: int) -> FnLocal:
		return FnLocal(index, self.fn_id)

	def collect_user_vars(self) -> Dict[int, Tuple[Range, str]]:
		"""local → (declaration span, name) for debug-info entries with a usable span."""
		user_vars: Dict[int, Tuple[Range, str]] = {}
		for debug in self.fn_input.body.var_debug_info:
			rng = self.adapter.range_from_span(debug.span)
			if rng is None:
				continue
			user_vars[debug.local] = (rng, debug.name)
		return user_vars

	def collect_decls(self) -> List[Declaration]:
		user_vars = self.collect_user_vars()
		lives = self.adapter.accurate_live()
		shared, mutable = self.adapter.borrow_live()
		must_live_at = self.adapter.must_live()
		drop_range = self.adapter.drop_live()
		decls: List[Declaration] = []
		for index, decl in enumerate(self.fn_input.body.local_decls):
			common = dict(
				local=self._local(index),
				ty=decl.ty,
				lives=tuple(lives.get(index, ())),
				shared_borrow=tuple(shared.get(index, ())),
				mutable_borrow=tuple(mutable.get(index, ())),
				drop=self.adapter.is_drop(index),
				drop_range=tuple(drop_range.get(index, ())),
				must_live_at=tuple(must_live_at.get(index, ())),
			)
			user = user_vars.get(index)
			if user is not None:
				span, name = user
				decls.append(UserDeclaration(name=name, span=span, **common))
			else:
				decls.append(OtherDeclaration(**common))
		return decls

	def _rval(self, stmt: MirStatement, rng: Range) -> Optional[Rval]:
		rv = stmt.rvalue
		if rv is None or rv.place is None:
			return None
		if rv.kind is RvalueKind.MOVE:
			return MoveRval(self._local(rv.place), rng)
		if rv.kind is RvalueKind.REF:
			return BorrowRval(self._local(rv.place), rng, rv.mutable)
		return None

	def _statement(self, stmt: MirStatement) -> Optional[Statement]:
		if not stmt.visible or stmt.kind is StatementKind.OTHER or stmt.local is None:
			return None
		rng = self.adapter.range_from_span(stmt.span)
		if rng is None:
			return None
		target = self._local(stmt.local)
		if stmt.kind is StatementKind.STORAGE_LIVE:
			return StorageLive(target, rng)
		if stmt.kind is StatementKind.STORAGE_DEAD:
			return StorageDead(target, rng)
		return Assign(target, rng, self._rval(stmt, rng))

	def _terminator(self, term: MirTerminator) -> Optional[Terminator]:
		if term.kind is TerminatorKind.DROP and term.place is not None:
			rng = self.adapter.range_from_span(term.span)
			return DropTerminator(self._local(term.place), rng) if rng is not None else None
		if term.kind is TerminatorKind.CALL and term.destination is not None:
			fn_span = self.adapter.range_from_span(term.fn_span or term.span)
			return CallTerminator(self._local(term.destination), fn_span) if fn_span is not None else None
		return OtherTerminator()

	def basic_blocks(self) -> List[BasicBlock]:
		blocks: List[BasicBlock] = []
		for bb in self.fn_input.body.basic_blocks:
			statements = [s for s in (self._statement(stmt) for stmt in bb.statements) if s is not None]
			terminator = self._terminator(bb.terminator) if bb.terminator is not None else None
			blocks.append(BasicBlock(tuple(statements), terminator))
		return blocks

	def analyze(self) -> Tuple[str, Function]:
		"""Build the JSON-serializable summary of this function."""
		log.debug("analyzing fn %d of %s", self.fn_id, self.fn_input.filename)
		decls = self.collect_decls()
		blocks = self.basic_blocks()
		return self.fn_input.filename, Function(fn_id=self.fn_id, basic_blocks=tuple(blocks), decls=tuple(decls))


__all__ = ["FunctionAnalyzer"]
