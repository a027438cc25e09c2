# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Serialized analysis results.

Pipeline placement:
  function body + solver relations → FunctionAnalyzer → Function (this file)
  → Workspace lines on stdout → backend snapshot → decorations

Everything below `Function` is produced once per analysis run and never
mutated afterwards. `File`/`Crate`/`Workspace` are the aggregation containers
that merge streamed results.

JSON layout: tagged unions carry a snake_case `"type"` key, ranges are
`{"from", "until"}` and locals are `{"id", "fn_id"}`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import FactFormatError
from .ranges import Range


@dataclass(frozen=True, order=True)
class FnLocal:
	"""A local is only unique within its function; (id, fn_id) is the stable key."""

	id: int
	fn_id: int

	def to_dict(self) -> dict[str, Any]:
		return {"id": self.id, "fn_id": self.fn_id}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "FnLocal":
		return cls(_require_int(data, "id"), _require_int(data, "fn_id"))


def _mapping(data: Any) -> Mapping[str, Any]:
	if not isinstance(data, Mapping):
		raise FactFormatError(f"expected an object, got {type(data).__name__}")
	return data


def _require(data: Mapping[str, Any], key: str) -> Any:
	_mapping(data)
	try:
		return data[key]
	except KeyError:
		raise FactFormatError(f"missing key '{key}' in {sorted(data)}") from None


def _require_int(data: Mapping[str, Any], key: str) -> int:
	value = _require(data, key)
	if isinstance(value, bool) or not isinstance(value, int):
		raise FactFormatError(f"'{key}' must be an integer, got {value!r}")
	return value


def _list(data: Mapping[str, Any], key: str, required: bool = False) -> list[Any]:
	"""A list-valued key; absent or null is an empty list unless `required`."""
	value = _require(data, key) if required else _mapping(data).get(key)
	if value is None:
		return []
	if not isinstance(value, list):
		raise FactFormatError(f"'{key}' must be a list, got {type(value).__name__}")
	return value


def _ranges_to_list(ranges: Tuple[Range, ...]) -> list[dict[str, Any]]:
	return [r.to_dict() for r in ranges]


def _ranges_from_list(data: Mapping[str, Any], key: str) -> Tuple[Range, ...]:
	return tuple(Range.from_dict(r) for r in _list(data, key))


# Rvalues (right-hand side of an assignment)

@dataclass(frozen=True)
class MoveRval:
	"""`target_local` is moved out of at `range`."""

	target_local: FnLocal
	range: Range

	def to_dict(self) -> dict[str, Any]:
		return {"type": "move", "target_local": self.target_local.to_dict(), "range": self.range.to_dict()}


@dataclass(frozen=True)
class BorrowRval:
	"""A reference to `target_local` is created at `range`."""

	target_local: FnLocal
	range: Range
	mutable: bool

	def to_dict(self) -> dict[str, Any]:
		return {
			"type": "borrow",
			"target_local": self.target_local.to_dict(),
			"range": self.range.to_dict(),
			"mutable": self.mutable,
		}


Rval = Union[MoveRval, BorrowRval]


def rval_from_dict(data: Mapping[str, Any]) -> Rval:
	tag = _require(data, "type")
	local = FnLocal.from_dict(_require(data, "target_local"))
	rng = Range.from_dict(_require(data, "range"))
	if tag == "move":
		return MoveRval(local, rng)
	if tag == "borrow":
		return BorrowRval(local, rng, bool(data.get("mutable", False)))
	raise FactFormatError(f"unknown rvalue type '{tag}'")


# Statements

@dataclass(frozen=True)
class StorageLive:
	target_local: FnLocal
	range: Range

	def to_dict(self) -> dict[str, Any]:
		return {"type": "storage_live", "target_local": self.target_local.to_dict(), "range": self.range.to_dict()}


@dataclass(frozen=True)
class StorageDead:
	target_local: FnLocal
	range: Range

	def to_dict(self) -> dict[str, Any]:
		return {"type": "storage_dead", "target_local": self.target_local.to_dict(), "range": self.range.to_dict()}


@dataclass(frozen=True)
class Assign:
	"""`target_local = <rval>`; `rval` is only recorded for moves and borrows."""

	target_local: FnLocal
	range: Range
	rval: Optional[Rval] = None

	def to_dict(self) -> dict[str, Any]:
		return {
			"type": "assign",
			"target_local": self.target_local.to_dict(),
			"range": self.range.to_dict(),
			"rval": self.rval.to_dict() if self.rval is not None else None,
		}


Statement = Union[StorageLive, StorageDead, Assign]


def statement_from_dict(data: Mapping[str, Any]) -> Statement:
	tag = _require(data, "type")
	local = FnLocal.from_dict(_require(data, "target_local"))
	rng = Range.from_dict(_require(data, "range"))
	if tag == "storage_live":
		return StorageLive(local, rng)
	if tag == "storage_dead":
		return StorageDead(local, rng)
	if tag == "assign":
		rval = data.get("rval")
		return Assign(local, rng, rval_from_dict(rval) if rval is not None else None)
	raise FactFormatError(f"unknown statement type '{tag}'")


# Terminators

@dataclass(frozen=True)
class DropTerminator:
	local: FnLocal
	range: Range

	def to_dict(self) -> dict[str, Any]:
		return {"type": "drop", "local": self.local.to_dict(), "range": self.range.to_dict()}


@dataclass(frozen=True)
class CallTerminator:
	"""`destination_local` receives the result of the call spanning `fn_span`."""

	destination_local: FnLocal
	fn_span: Range

	def to_dict(self) -> dict[str, Any]:
		return {"type": "call", "destination_local": self.destination_local.to_dict(), "fn_span": self.fn_span.to_dict()}


@dataclass(frozen=True)
class OtherTerminator:
	def to_dict(self) -> dict[str, Any]:
		return {"type": "other"}


Terminator = Union[DropTerminator, CallTerminator, OtherTerminator]


def terminator_from_dict(data: Mapping[str, Any]) -> Terminator:
	tag = _require(data, "type")
	if tag == "drop":
		return DropTerminator(FnLocal.from_dict(_require(data, "local")), Range.from_dict(_require(data, "range")))
	if tag == "call":
		return CallTerminator(
			FnLocal.from_dict(_require(data, "destination_local")),
			Range.from_dict(_require(data, "fn_span")),
		)
	if tag == "other":
		return OtherTerminator()
	raise FactFormatError(f"unknown terminator type '{tag}'")


@dataclass(frozen=True)
class BasicBlock:
	"""Statement facts of one block followed by its (optional) terminator fact."""

	statements: Tuple[Statement, ...] = ()
	terminator: Optional[Terminator] = None

	def to_dict(self) -> dict[str, Any]:
		return {
			"statements": [s.to_dict() for s in self.statements],
			"terminator": self.terminator.to_dict() if self.terminator is not None else None,
		}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "BasicBlock":
		statements = _list(data, "statements")
		term = data.get("terminator")
		return cls(
			statements=tuple(statement_from_dict(s) for s in statements),
			terminator=terminator_from_dict(term) if term is not None else None,
		)


# Declarations

@dataclass(frozen=True, kw_only=True)
class OtherDeclaration:
	"""
	A compiler-introduced local (no debug-info name).

	The range lists are independent views of the same local and may overlap;
	e.g. shared_borrow ∩ mutable_borrow marks a conflict window.
	"""

	local: FnLocal
	ty: str
	lives: Tuple[Range, ...] = ()
	shared_borrow: Tuple[Range, ...] = ()
	mutable_borrow: Tuple[Range, ...] = ()
	drop: bool = False
	drop_range: Tuple[Range, ...] = ()
	must_live_at: Tuple[Range, ...] = ()

	@property
	def display_name(self) -> Optional[str]:
		return None

	def _common_dict(self) -> dict[str, Any]:
		return {
			"local": self.local.to_dict(),
			"ty": self.ty,
			"lives": _ranges_to_list(self.lives),
			"shared_borrow": _ranges_to_list(self.shared_borrow),
			"mutable_borrow": _ranges_to_list(self.mutable_borrow),
			"drop": self.drop,
			"drop_range": _ranges_to_list(self.drop_range),
			"must_live_at": _ranges_to_list(self.must_live_at),
		}

	def to_dict(self) -> dict[str, Any]:
		return {"type": "other", **self._common_dict()}


@dataclass(frozen=True, kw_only=True)
class UserDeclaration(OtherDeclaration):
	"""A user-visible variable: named in debug info, declared at `span`."""

	name: str
	span: Range

	@property
	def display_name(self) -> Optional[str]:
		return self.name

	def to_dict(self) -> dict[str, Any]:
		return {"type": "user", "name": self.name, "span": self.span.to_dict(), **self._common_dict()}


Declaration = Union[UserDeclaration, OtherDeclaration]


def decl_from_dict(data: Mapping[str, Any]) -> Declaration:
	tag = _require(data, "type")
	common = dict(
		local=FnLocal.from_dict(_require(data, "local")),
		ty=str(data.get("ty", "")),
		lives=_ranges_from_list(data, "lives"),
		shared_borrow=_ranges_from_list(data, "shared_borrow"),
		mutable_borrow=_ranges_from_list(data, "mutable_borrow"),
		drop=bool(data.get("drop", False)),
		drop_range=_ranges_from_list(data, "drop_range"),
		must_live_at=_ranges_from_list(data, "must_live_at"),
	)
	if tag == "user":
		return UserDeclaration(name=str(_require(data, "name")), span=Range.from_dict(_require(data, "span")), **common)
	if tag == "other":
		return OtherDeclaration(**common)
	raise FactFormatError(f"unknown declaration type '{tag}'")


@dataclass(frozen=True)
class Function:
	"""Full per-function output of one analysis run."""

	fn_id: int
	basic_blocks: Tuple[BasicBlock, ...] = ()
	decls: Tuple[Declaration, ...] = ()

	def to_dict(self) -> dict[str, Any]:
		return {
			"fn_id": self.fn_id,
			"basic_blocks": [bb.to_dict() for bb in self.basic_blocks],
			"decls": [d.to_dict() for d in self.decls],
		}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "Function":
		return cls(
			fn_id=_require_int(data, "fn_id"),
			basic_blocks=tuple(BasicBlock.from_dict(bb) for bb in _list(data, "basic_blocks")),
			decls=tuple(decl_from_dict(d) for d in _list(data, "decls")),
		)


# Aggregation containers

@dataclass
class File:
	items: List[Function] = field(default_factory=list)

	def extend_dedup(self, items: List[Function]) -> None:
		"""Append functions whose fn_id is not present yet (first one wins)."""
		seen = {f.fn_id for f in self.items}
		for fn in items:
			if fn.fn_id in seen:
				continue
			seen.add(fn.fn_id)
			self.items.append(fn)

	def to_dict(self) -> dict[str, Any]:
		return {"items": [f.to_dict() for f in self.items]}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "File":
		return cls(items=[Function.from_dict(f) for f in _list(data, "items", required=True)])


@dataclass
class Crate:
	"""Source path → File."""

	files: Dict[str, File] = field(default_factory=dict)

	def merge(self, other: "Crate") -> None:
		for path, file in other.files.items():
			existing = self.files.get(path)
			if existing is None:
				existing = self.files[path] = File()
			existing.extend_dedup(file.items)

	def to_dict(self) -> dict[str, Any]:
		return {path: f.to_dict() for path, f in self.files.items()}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "Crate":
		if not isinstance(data, Mapping):
			raise FactFormatError("crate must be an object keyed by file path")
		return cls(files={str(path): File.from_dict(f) for path, f in data.items()})


@dataclass
class Workspace:
	"""Crate name → Crate; the unit streamed by the analyzer and cached by the backend."""

	crates: Dict[str, Crate] = field(default_factory=dict)

	def merge(self, other: "Workspace") -> None:
		for name, krate in other.crates.items():
			existing = self.crates.get(name)
			if existing is None:
				existing = self.crates[name] = Crate()
			existing.merge(krate)

	def function_count(self) -> int:
		return sum(len(f.items) for k in self.crates.values() for f in k.files.values())

	def functions_in(self, path: Union[str, Callable[[str], bool]]) -> Iterator[Function]:
		"""
		Every function recorded for `path`, across all crates.

		`path` is either a file key or a predicate over file keys.
		"""
		matches = path if callable(path) else path.__eq__
		for krate in self.crates.values():
			for filename, file in krate.files.items():
				if matches(filename):
					yield from file.items

	def to_dict(self) -> dict[str, Any]:
		return {name: k.to_dict() for name, k in self.crates.items()}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "Workspace":
		if not isinstance(data, Mapping):
			raise FactFormatError("workspace must be an object keyed by crate name")
		return cls(crates={str(name): Crate.from_dict(k) for name, k in data.items()})

	@classmethod
	def single(cls, crate_name: str, path: str, fn: Function) -> "Workspace":
		return cls(crates={crate_name: Crate(files={path: File(items=[fn])})})


__all__ = [
	"FnLocal",
	"MoveRval",
	"BorrowRval",
	"Rval",
	"rval_from_dict",
	"StorageLive",
	"StorageDead",
	"Assign",
	"Statement",
	"statement_from_dict",
	"DropTerminator",
	"CallTerminator",
	"OtherTerminator",
	"Terminator",
	"terminator_from_dict",
	"BasicBlock",
	"OtherDeclaration",
	"UserDeclaration",
	"Declaration",
	"decl_from_dict",
	"Function",
	"File",
	"Crate",
	"Workspace",
]
