# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Solver relations consumed by the fact adapter.

The region-constraint solver runs elsewhere; what reaches us is a set of
already-computed fixed-point relations keyed by opaque indices (points,
locals, loans, origins). They are treated as read-only tables here.

Two input forms are supported:
- JSON objects (`{"<point>": [<local>, ...]}`), embedded in a function input;
- a directory of `<relation>.facts` dumps, parsed by `facts_parser`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ownlens.core.errors import FactFormatError
from .facts_parser import LoanAtom, LocalAtom, OriginAtom, read_fact_file
from .location_table import LocationTable, RichLocation

log = logging.getLogger(__name__)

Relation = Dict[int, List[int]]

POINT_KEYED_RELATIONS = ("var_live_on_entry", "var_drop_live_on_entry", "loan_live_at", "origin_live_on_entry")


def _relation_from_json(data: Any, name: str) -> Relation:
	if data is None:
		return {}
	if not isinstance(data, Mapping):
		raise FactFormatError(f"relation '{name}' must be an object")
	try:
		return {int(k): [int(v) for v in vs] for k, vs in data.items()}
	except (TypeError, ValueError) as err:
		raise FactFormatError(f"relation '{name}' has non-integer entries") from err


@dataclass(frozen=True)
class BorrowData:
	"""One loan: which local it borrows and whether the borrow is mutable."""

	local: int
	mutable: bool


@dataclass
class BorrowSet:
	loans: Dict[int, BorrowData] = field(default_factory=dict)

	def local_of(self, loan: int) -> int | None:
		data = self.loans.get(loan)
		return data.local if data is not None else None

	@classmethod
	def from_list(cls, items: Iterable[Mapping[str, Any]] | None) -> "BorrowSet":
		loans: Dict[int, BorrowData] = {}
		for item in items or ():
			try:
				loans[int(item["loan"])] = BorrowData(int(item["local"]), bool(item.get("mutable", False)))
			except (KeyError, TypeError, ValueError) as err:
				raise FactFormatError(f"invalid borrow entry: {item!r}") from err
		return cls(loans)


@dataclass
class SolverInput:
	"""Input facts the adapter still needs after solving: where locals are dropped."""

	var_dropped_at: List[Tuple[int, int]] = field(default_factory=list)

	def dropped_locals(self) -> set[int]:
		return {local for local, _point in self.var_dropped_at}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any] | None) -> "SolverInput":
		pairs: List[Tuple[int, int]] = []
		for entry in (data or {}).get("var_dropped_at") or ():
			try:
				local, point = entry
				pairs.append((int(local), int(point)))
			except (TypeError, ValueError) as err:
				raise FactFormatError(f"invalid var_dropped_at entry: {entry!r}") from err
		return cls(pairs)


@dataclass
class SolverOutput:
	"""
	Fixed-point relations of one solver run.

	- var_live_on_entry / var_drop_live_on_entry: point → locals
	- loan_live_at: point → loans
	- origin_live_on_entry: point → origins
	- origin_contains_loan_anywhere: origin → loans
	"""

	var_live_on_entry: Relation = field(default_factory=dict)
	var_drop_live_on_entry: Relation = field(default_factory=dict)
	loan_live_at: Relation = field(default_factory=dict)
	origin_live_on_entry: Relation = field(default_factory=dict)
	origin_contains_loan_anywhere: Relation = field(default_factory=dict)

	@classmethod
	def from_dict(cls, data: Mapping[str, Any] | None) -> "SolverOutput":
		data = data or {}
		return cls(
			var_live_on_entry=_relation_from_json(data.get("var_live_on_entry"), "var_live_on_entry"),
			var_drop_live_on_entry=_relation_from_json(data.get("var_drop_live_on_entry"), "var_drop_live_on_entry"),
			loan_live_at=_relation_from_json(data.get("loan_live_at"), "loan_live_at"),
			origin_live_on_entry=_relation_from_json(data.get("origin_live_on_entry"), "origin_live_on_entry"),
			origin_contains_loan_anywhere=_relation_from_json(
				data.get("origin_contains_loan_anywhere"), "origin_contains_loan_anywhere"
			),
		)


def _atom_index(atom: object) -> int:
	if isinstance(atom, (LocalAtom, LoanAtom, OriginAtom)):
		return atom.index
	if isinstance(atom, int):
		return atom
	raise FactFormatError(f"expected an index atom, got {atom!r}")


def _point_of(atom: object, table: LocationTable) -> int:
	if isinstance(atom, RichLocation):
		return table.point_index(atom)
	if isinstance(atom, int):
		return atom
	raise FactFormatError(f"expected a point atom, got {atom!r}")


def load_facts_dir(facts_dir: Path, table: LocationTable) -> Tuple[SolverInput, SolverOutput]:
	"""
	Load relations from a directory of fact dumps.

	Point-keyed relations are `"<point>"	"<value>"` tuples,
	`origin_contains_loan_anywhere` is `"<origin>"	"<loan>"` and
	`var_dropped_at` is `"<local>"	"<point>"`. Missing files are empty
	relations; tuples that do not fit the table are skipped.
	"""
	if not facts_dir.is_dir():
		raise FactFormatError("facts directory not found", path=str(facts_dir))
	output = SolverOutput()
	for name in POINT_KEYED_RELATIONS:
		rel: Relation = getattr(output, name)
		for tup in _read_optional(facts_dir / f"{name}.facts"):
			try:
				point = _point_of(tup[0], table)
				values = [_atom_index(a) for a in tup[1:]]
			except (FactFormatError, IndexError) as err:
				log.debug("skipping %s tuple %r: %s", name, tup, err)
				continue
			rel.setdefault(point, []).extend(values)
	for tup in _read_optional(facts_dir / "origin_contains_loan_anywhere.facts"):
		try:
			origin, loans = _atom_index(tup[0]), [_atom_index(a) for a in tup[1:]]
		except (FactFormatError, IndexError) as err:
			log.debug("skipping origin_contains_loan_anywhere tuple %r: %s", tup, err)
			continue
		output.origin_contains_loan_anywhere.setdefault(origin, []).extend(loans)
	solver_input = SolverInput()
	for tup in _read_optional(facts_dir / "var_dropped_at.facts"):
		try:
			solver_input.var_dropped_at.append((_atom_index(tup[0]), _point_of(tup[1], table)))
		except (FactFormatError, IndexError) as err:
			log.debug("skipping var_dropped_at tuple %r: %s", tup, err)
	return solver_input, output


def _read_optional(path: Path):
	if not path.is_file():
		return iter(())
	return read_fact_file(path)


__all__ = [
	"Relation",
	"BorrowData",
	"BorrowSet",
	"SolverInput",
	"SolverOutput",
	"load_facts_dir",
]
