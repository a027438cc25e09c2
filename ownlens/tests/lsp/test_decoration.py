#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Local selection under the cursor and decoration building."""

from ownlens.core.models import (
	Assign,
	BasicBlock,
	BorrowRval,
	CallTerminator,
	FnLocal,
	Function,
	MoveRval,
	OtherDeclaration,
	UserDeclaration,
)
from ownlens.core.ranges import Range
from ownlens.core.visitor import mir_visit
from ownlens.lsp.decoration import CalcDecos, Deco, DecoKind, SelectLocal

A = FnLocal(1, 1)
B = FnLocal(2, 1)
C = FnLocal(3, 1)


def _select(fn: Function, pos: int):
	selector = SelectLocal(pos)
	mir_visit(fn, selector)
	return selector.selected()


def _decos(fn: Function, *locals_: FnLocal, resolve: bool = False):
	calc = CalcDecos(locals_)
	mir_visit(fn, calc)
	if resolve:
		calc.handle_overlapping()
	return calc.decorations()


def _summary(decos):
	return sorted((d.kind.value, d.range.from_, d.range.until, d.overlapped) for d in decos)


def _select_across(pos: int, *fns: Function):
	selector = SelectLocal(pos)
	for fn in fns:
		mir_visit(fn, selector)
	return selector.selected()


def test_narrower_move_beats_later_declaration():
	"""A move seen before any declaration under the cursor stays selected."""
	moves = Function(
		fn_id=1,
		basic_blocks=(BasicBlock(statements=(Assign(C, Range(10, 12), MoveRval(B, Range(10, 12))),)),),
	)
	declares = Function(fn_id=2, decls=(UserDeclaration(local=A, ty="T", name="a", span=Range(0, 30)),))
	assert _select_across(12, moves, declares) == B
	assert _select_across(20, moves, declares) == A
	assert _select_across(40, moves, declares) is None


def test_declaration_is_never_displaced():
	"""Once a declaration is selected, narrower moves, borrows and calls leave it alone."""
	fn = Function(
		fn_id=1,
		basic_blocks=(
			BasicBlock(
				statements=(
					Assign(C, Range(10, 12), MoveRval(B, Range(10, 12))),
					Assign(C, Range(11, 13), BorrowRval(C, Range(11, 13), True)),
				),
				terminator=CallTerminator(B, Range(11, 12)),
			),
		),
		decls=(UserDeclaration(local=A, ty="T", name="a", span=Range(0, 30)),),
	)
	assert _select(fn, 12) == A


def test_declaration_beats_wider_borrow():
	"""A narrower declaration replaces a wider borrow already selected."""
	selector = SelectLocal(5)
	selector.visit_stmt(Assign(C, Range(0, 20), BorrowRval(B, Range(0, 20), False)))
	selector.visit_decl(UserDeclaration(local=A, ty="T", name="a", span=Range(4, 6)))
	assert selector.selected() == A


def test_anonymous_declarations_are_not_selectable():
	fn = Function(fn_id=1, decls=(OtherDeclaration(local=A, ty="T", lives=(Range(0, 30),)),))
	assert _select(fn, 5) is None


def test_enclosing_call_wins_over_argument_call():
	"""Between two calls the wider one is kept."""
	fn = Function(
		fn_id=1,
		basic_blocks=(
			BasicBlock(terminator=CallTerminator(B, Range(8, 12))),
			BasicBlock(terminator=CallTerminator(A, Range(5, 20))),
		),
	)
	assert _select(fn, 10) == A


def test_call_does_not_displace_move():
	fn = Function(
		fn_id=1,
		basic_blocks=(
			BasicBlock(
				statements=(Assign(C, Range(8, 12), MoveRval(B, Range(8, 12))),),
				terminator=CallTerminator(A, Range(5, 20)),
			),
		),
	)
	assert _select(fn, 10) == B


def test_lifetime_and_outlive():
	"""A value required past its last use gets an outlive window after its lifetime."""
	fn = Function(
		fn_id=1,
		decls=(
			UserDeclaration(
				local=A,
				ty="T",
				name="a",
				span=Range(1, 2),
				lives=(Range(1, 20),),
				drop_range=(Range(18, 20),),
				must_live_at=(Range(1, 25),),
			),
		),
	)
	decos = _decos(fn, A)
	assert _summary(decos) == [("lifetime", 1, 20, False), ("outlive", 21, 25, False)]
	lifetime = next(d for d in decos if d.kind is DecoKind.LIFETIME)
	assert lifetime.hover_text == "lifetime of variable `a`"


def test_shared_and_mutable_overlap():
	fn = Function(
		fn_id=1,
		decls=(OtherDeclaration(local=A, ty="T", shared_borrow=(Range(1, 10),), mutable_borrow=(Range(5, 15),)),),
	)
	decos = _decos(fn, A)
	assert _summary(decos) == [("shared_mut", 5, 10, False)]
	assert decos[0].hover_text == "immutable and mutable borrows of anonymous variable exist here"


def test_only_selected_locals_are_decorated():
	fn = Function(
		fn_id=1,
		basic_blocks=(
			BasicBlock(
				statements=(
					Assign(C, Range(3, 5), BorrowRval(A, Range(3, 5), True)),
					Assign(C, Range(6, 8), BorrowRval(B, Range(6, 8), False)),
					Assign(C, Range(9, 11), MoveRval(A, Range(9, 11))),
				),
			),
		),
	)
	assert _summary(_decos(fn, A)) == [("move", 9, 11, False), ("mut_borrow", 3, 5, False)]
	assert _summary(_decos(fn, B)) == [("imm_borrow", 6, 8, False)]


def test_nested_calls_keep_the_outermost():
	"""Inner call spans are dropped whichever order they are visited in."""
	outer_first = Function(
		fn_id=1,
		basic_blocks=(
			BasicBlock(terminator=CallTerminator(A, Range(5, 20))),
			BasicBlock(terminator=CallTerminator(A, Range(8, 12))),
		),
	)
	inner_first = Function(fn_id=1, basic_blocks=tuple(reversed(outer_first.basic_blocks)))
	assert _summary(_decos(outer_first, A)) == [("call", 5, 20, False)]
	assert _summary(_decos(inner_first, A)) == [("call", 5, 20, False)]


def test_overlap_splits_lower_priority():
	"""A move inside a lifetime cuts the lifetime into overlapped and plain parts."""
	fn = Function(
		fn_id=1,
		basic_blocks=(BasicBlock(statements=(Assign(C, Range(5, 8), MoveRval(A, Range(5, 8))),)),),
		decls=(UserDeclaration(local=A, ty="T", name="a", span=Range(1, 2), lives=(Range(1, 20),)),),
	)
	decos = _decos(fn, A, resolve=True)
	assert _summary(decos) == [
		("lifetime", 1, 4, False),
		("lifetime", 5, 8, True),
		("lifetime", 9, 20, False),
		("move", 5, 8, False),
	]


def test_overlap_resolution_keeps_coverage():
	"""Every position covered before resolution is still covered afterwards."""
	fn = Function(
		fn_id=1,
		basic_blocks=(
			BasicBlock(
				statements=(
					Assign(C, Range(3, 9), BorrowRval(A, Range(3, 9), False)),
					Assign(C, Range(7, 14), BorrowRval(A, Range(7, 14), True)),
				),
				terminator=CallTerminator(A, Range(12, 30)),
			),
		),
		decls=(
			UserDeclaration(
				local=A,
				ty="T",
				name="a",
				span=Range(1, 2),
				lives=(Range(0, 25),),
				must_live_at=(Range(0, 35),),
			),
		),
	)

	def covered(decos):
		return {p for d in decos for p in range(d.range.from_, d.range.until + 1)}

	before = _decos(fn, A)
	after = _decos(fn, A, resolve=True)
	assert covered(after) == covered(before)
	for deco in after:
		assert deco.range.from_ < deco.range.until
	# the highest-priority decoration is never cut
	assert [d.range for d in after if d.kind is DecoKind.OUTLIVE] == [Range(26, 35)]


def test_lsp_payload_positions():
	deco = Deco(DecoKind.MOVE, A, Range(4, 7), "variable moved")
	payload = deco.to_lsp_dict("abc\ndefghij")
	assert payload["type"] == "move"
	assert payload["range"] == {"start": {"line": 1, "character": 0}, "end": {"line": 1, "character": 3}}
	assert payload["local"] == {"id": 1, "fn_id": 1}
	assert payload["overlapped"] is False


def test_ranges_touching_at_one_position_are_not_split():
	"""A shared boundary position is not an intersection; both decorations keep it."""
	fn = Function(
		fn_id=1,
		basic_blocks=(BasicBlock(statements=(Assign(C, Range(5, 8), MoveRval(A, Range(5, 8))),)),),
		decls=(UserDeclaration(local=A, ty="T", name="a", span=Range(1, 2), lives=(Range(8, 20),)),),
	)
	decos = _decos(fn, A, resolve=True)
	assert _summary(decos) == [
		("lifetime", 8, 20, False),
		("move", 5, 8, False),
	]
