# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Function body as handed over by the host compiler.

This is the input side of the analyzer and deliberately thin: just the parts
of a borrow-checked MIR body that the fact adapter needs (per-statement spans,
the place written by an assignment, the operand moved or borrowed, debug-info
names and terminator kinds). The compiler front-end serializes it as JSON;
see `MirBody.from_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from ownlens.core.errors import FactFormatError


@dataclass(frozen=True)
class SpanData:
	"""Compiler span: byte positions in the global source map, plus the owning file when known."""

	lo: int
	hi: int
	file: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "SpanData":
		try:
			return cls(int(data["lo"]), int(data["hi"]), data.get("file"))
		except (KeyError, TypeError, ValueError) as err:
			raise FactFormatError(f"invalid span: {data!r}") from err


class StatementKind(Enum):
	ASSIGN = "assign"
	STORAGE_LIVE = "storage_live"
	STORAGE_DEAD = "storage_dead"
	OTHER = "other"


class RvalueKind(Enum):
	MOVE = "move"  # use of a moved operand
	REF = "ref"  # reference creation (&place / &mut place)
	OTHER = "other"  # copies, constants, arithmetic, aggregates, ...


@dataclass(frozen=True)
class Rvalue:
	kind: RvalueKind
	place: Optional[int] = None  # local of the moved/borrowed place
	mutable: bool = False  # borrow kind, only meaningful for REF

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "Rvalue":
		raw = data.get("kind", "other")
		try:
			kind = RvalueKind(raw)
		except ValueError:
			kind = RvalueKind.OTHER
		place = data.get("place")
		if kind is not RvalueKind.OTHER and place is None:
			raise FactFormatError(f"{kind.value} rvalue without a place")
		return cls(kind, int(place) if place is not None else None, bool(data.get("mutable", False)))


@dataclass(frozen=True)
class MirStatement:
	"""
	One MIR statement.

	`local` is the assigned place's local for ASSIGN and the storage local
	for STORAGE_LIVE / STORAGE_DEAD. `visible` is false for spans that the
	compiler synthesized (desugaring, macro internals).
	"""

	kind: StatementKind
	span: SpanData
	local: Optional[int] = None
	rvalue: Optional[Rvalue] = None
	visible: bool = True

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "MirStatement":
		raw = data.get("kind", "other")
		try:
			kind = StatementKind(raw)
		except ValueError:
			kind = StatementKind.OTHER
		local = data.get("local", data.get("place"))
		if kind is not StatementKind.OTHER and local is None:
			raise FactFormatError(f"{kind.value} statement without a target local")
		rvalue = data.get("rvalue")
		return cls(
			kind=kind,
			span=SpanData.from_dict(data.get("span") or {}),
			local=int(local) if local is not None else None,
			rvalue=Rvalue.from_dict(rvalue) if kind is StatementKind.ASSIGN and rvalue is not None else None,
			visible=bool(data.get("visible", True)),
		)


class TerminatorKind(Enum):
	DROP = "drop"
	CALL = "call"
	OTHER = "other"  # goto, return, switch, assert, unreachable, ...


@dataclass(frozen=True)
class MirTerminator:
	kind: TerminatorKind
	span: SpanData
	place: Optional[int] = None  # dropped local
	destination: Optional[int] = None  # call destination local
	fn_span: Optional[SpanData] = None  # whole call expression, including arguments
	raw_kind: str = "other"

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "MirTerminator":
		raw = str(data.get("kind", "other"))
		try:
			kind = TerminatorKind(raw)
		except ValueError:
			kind = TerminatorKind.OTHER
		span = SpanData.from_dict(data.get("span") or {})
		if kind is TerminatorKind.DROP:
			if data.get("place") is None:
				raise FactFormatError("drop terminator without a place")
			return cls(kind, span, place=int(data["place"]), raw_kind=raw)
		if kind is TerminatorKind.CALL:
			if data.get("destination") is None:
				raise FactFormatError("call terminator without a destination")
			fn_span = data.get("fn_span")
			return cls(
				kind,
				span,
				destination=int(data["destination"]),
				fn_span=SpanData.from_dict(fn_span) if fn_span is not None else span,
				raw_kind=raw,
			)
		return cls(kind, span, raw_kind=raw)


@dataclass(frozen=True)
class MirBlock:
	statements: List[MirStatement] = field(default_factory=list)
	terminator: Optional[MirTerminator] = None


@dataclass(frozen=True)
class LocalDecl:
	ty: str


@dataclass(frozen=True)
class VarDebugInfo:
	"""Debug-info entry naming a local; only place-backed entries are kept."""

	name: str
	local: int
	span: SpanData


@dataclass(frozen=True)
class MirBody:
	local_decls: List[LocalDecl]
	var_debug_info: List[VarDebugInfo]
	basic_blocks: List[MirBlock]

	def statement_counts(self) -> List[int]:
		return [len(bb.statements) for bb in self.basic_blocks]

	def span_at(self, block: int, statement_index: int) -> Optional[SpanData]:
		"""Span of a statement, or of the terminator when the index is one past the end."""
		if block < 0 or block >= len(self.basic_blocks):
			return None
		bb = self.basic_blocks[block]
		if statement_index < len(bb.statements):
			return bb.statements[statement_index].span
		if bb.terminator is not None:
			return bb.terminator.span
		return None

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "MirBody":
		if not isinstance(data, Mapping):
			raise FactFormatError("body must be an object")
		blocks: List[MirBlock] = []
		for bb in data.get("basic_blocks") or ():
			term = bb.get("terminator")
			blocks.append(
				MirBlock(
					statements=[MirStatement.from_dict(s) for s in bb.get("statements") or ()],
					terminator=MirTerminator.from_dict(term) if term is not None else None,
				)
			)
		debug_info: List[VarDebugInfo] = []
		for entry in data.get("var_debug_info") or ():
			# constant / composite debug entries have no backing local
			if entry.get("local") is None or entry.get("name") is None:
				continue
			debug_info.append(VarDebugInfo(str(entry["name"]), int(entry["local"]), SpanData.from_dict(entry.get("span") or {})))
		return cls(
			local_decls=[LocalDecl(str(d.get("ty", ""))) for d in data.get("local_decls") or ()],
			var_debug_info=debug_info,
			basic_blocks=blocks,
		)


__all__ = [
	"SpanData",
	"StatementKind",
	"RvalueKind",
	"Rvalue",
	"MirStatement",
	"TerminatorKind",
	"MirTerminator",
	"MirBlock",
	"LocalDecl",
	"VarDebugInfo",
	"MirBody",
]
