# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Fact adapter: solver relations → per-local source ranges.

Every relation the solver produces is a set of (point, thing) pairs. For a
local we collect the points where it is live / borrowed / required, turn each
point into a rich location (block, statement, phase) and pair *start* points
with *mid* points in program order: a start at statement `s` and the matching
mid at statement `m` become the range from the beginning of `s`'s span to the
end of `m`'s span.

Failure policy: a span that does not convert into a valid range (zero width,
other file) only drops the pair it belongs to.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ownlens.core.ranges import Range, eliminated_ranges, erase_superset
from ownlens.core.text import SourceText
from .body import MirBody, SpanData
from .inputs import FunctionInput
from .location_table import LocationTable, Phase, RichLocation
from .relations import Relation

log = logging.getLogger(__name__)

LocalRanges = Dict[int, List[Range]]


def range_from_span(text: SourceText, span: SpanData, filename: Optional[str] = None) -> Optional[Range]:
	"""Character range of a compiler span, or None when it is empty or belongs to another file."""
	if filename is not None and span.file is not None and span.file != filename:
		return None
	return Range.new(text.loc(span.lo), text.loc(span.hi))


class FactAdapter:
	"""
	Converts the relations of one function into per-local range lists.

	The adapter only reads its inputs; every method returns fresh maps
	keyed by local index.
	"""

	def __init__(self, fn_input: FunctionInput, text: Optional[SourceText] = None) -> None:
		self.fn_input = fn_input
		self.body: MirBody = fn_input.body
		self.text = text if text is not None else SourceText(fn_input.source, fn_input.offset)
		self.location_table = LocationTable(self.body.statement_counts())

	def range_from_span(self, span: SpanData) -> Optional[Range]:
		return range_from_span(self.text, span, self.fn_input.filename)

	def stmt_location_to_range(self, block: int, statement_index: int) -> Optional[Range]:
		span = self.body.span_at(block, statement_index)
		if span is None:
			return None
		return self.range_from_span(span)

	def rich_locations_to_ranges(self, locations: Iterable[RichLocation]) -> List[Range]:
		"""
		Pair start and mid points in program order and build one range per pair.

		Surplus points of either phase are ignored.
		"""
		starts: List[Tuple[int, int]] = []
		mids: List[Tuple[int, int]] = []
		for loc in locations:
			if loc.phase is Phase.START:
				starts.append(loc.key)
			else:
				mids.append(loc.key)
		starts.sort()
		mids.sort()
		ranges: List[Range] = []
		for s, m in zip(starts, mids):
			sr = self.stmt_location_to_range(*s)
			mr = self.stmt_location_to_range(*m)
			if sr is None or mr is None:
				continue
			rng = Range.new(sr.from_, mr.until)
			if rng is not None:
				ranges.append(rng)
		return ranges

	def _locations_by_key(self, relation: Relation) -> Dict[int, List[RichLocation]]:
		"""Invert a point → values relation into value → rich locations."""
		by_key: Dict[int, List[RichLocation]] = {}
		for point, values in relation.items():
			location = self.location_table.to_rich_location(point)
			for value in values:
				by_key.setdefault(value, []).append(location)
		return by_key

	def _to_ranges(self, by_local: Dict[int, List[RichLocation]]) -> LocalRanges:
		return {local: eliminated_ranges(self.rich_locations_to_ranges(locs)) for local, locs in by_local.items()}

	def accurate_live(self) -> LocalRanges:
		"""Ranges where each local holds a value that is used later."""
		return self._to_ranges(self._locations_by_key(self.fn_input.output.var_live_on_entry))

	def drop_live(self) -> LocalRanges:
		"""Ranges where each local is live only because its drop glue will run."""
		return self._to_ranges(self._locations_by_key(self.fn_input.output.var_drop_live_on_entry))

	def borrow_live(self) -> Tuple[LocalRanges, LocalRanges]:
		"""(shared, mutable) ranges during which a loan of each local is live."""
		borrow_set = self.fn_input.borrow_set
		shared: Dict[int, List[RichLocation]] = {}
		mutable: Dict[int, List[RichLocation]] = {}
		for point, loans in self.fn_input.output.loan_live_at.items():
			location = self.location_table.to_rich_location(point)
			for loan in loans:
				data = borrow_set.loans.get(loan)
				if data is None:
					log.debug("fn %d: loan bw%d missing from borrow set", self.fn_input.fn_id, loan)
					continue
				target = mutable if data.mutable else shared
				target.setdefault(data.local, []).append(location)
		return self._to_ranges(shared), self._to_ranges(mutable)

	def must_live(self) -> LocalRanges:
		"""
		Ranges where each borrowed local is required to stay valid.

		A local must live wherever an origin that (anywhere) contains one of
		its loans is live.
		"""
		output = self.fn_input.must_live_output
		region_locations = self._locations_by_key(output.origin_live_on_entry)
		local_regions: Dict[int, set[int]] = {}
		for region, loans in output.origin_contains_loan_anywhere.items():
			for loan in loans:
				local = self.fn_input.borrow_set.local_of(loan)
				if local is not None:
					local_regions.setdefault(local, set()).add(region)
		result: LocalRanges = {}
		for local, regions in local_regions.items():
			locations: List[RichLocation] = []
			for region in sorted(regions):
				locations.extend(region_locations.get(region, ()))
			result[local] = eliminated_ranges(erase_superset(self.rich_locations_to_ranges(locations), False))
		return result

	def is_drop(self, local: int) -> bool:
		return local in self.fn_input.solver_input.dropped_locals()


__all__ = ["FactAdapter", "LocalRanges", "range_from_span"]
