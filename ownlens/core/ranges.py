# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Character ranges and the interval algebra used across the analyzer and the
decoration builder.

Boundary convention: a `Range` covers every position from `from_` to `until`
*inclusive*, and a valid range is never empty or a single point
(`from_ < until`). Consequences:

- two ranges overlap iff `a.until >= b.from_` (for `a.from_ <= b.from_`), and
  their common part is only a `Range` when it spans more than one position,
  so two ranges that share just a boundary position have no common range;
- subtracting `[c0, c1]` from `[f0, f1]` leaves `[f0, c0 - 1]` and
  `[c1 + 1, f1]`, never the boundary positions themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from .errors import FactFormatError
from .text import Loc


@dataclass(frozen=True, order=True)
class Range:
	"""Inclusive `[from_, until]` span of character positions; see module docs."""

	from_: Loc
	until: Loc

	@classmethod
	def new(cls, from_: Loc, until: Loc) -> Optional["Range"]:
		"""Build a range, or return None when `from_ < until` does not hold."""
		if from_ < 0 or until <= from_:
			return None
		return cls(from_, until)

	@property
	def size(self) -> int:
		return self.until - self.from_

	def contains(self, pos: Loc) -> bool:
		return self.from_ <= pos <= self.until

	def to_dict(self) -> dict[str, Any]:
		return {"from": self.from_, "until": self.until}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "Range":
		try:
			rng = cls.new(int(data["from"]), int(data["until"]))
		except (KeyError, TypeError, ValueError) as err:
			raise FactFormatError(f"invalid range object: {data!r}") from err
		if rng is None:
			raise FactFormatError(f"empty or inverted range: {data!r}")
		return rng

	def __repr__(self) -> str:
		return f"Range({self.from_}, {self.until})"


def is_super_range(r1: Range, r2: Range) -> bool:
	"""True iff `r2` lies strictly inside `r1` (at most one shared boundary)."""
	return (r1.from_ < r2.from_ and r2.until <= r1.until) or (r1.from_ <= r2.from_ and r2.until < r1.until)


def common_range(r1: Range, r2: Range) -> Optional[Range]:
	"""Overlapping part of two ranges, or None."""
	if r2.from_ < r1.from_:
		r1, r2 = r2, r1
	if r1.until < r2.from_:
		return None
	return Range.new(r2.from_, min(r1.until, r2.until))


def common_ranges(ranges: List[Range]) -> List[Range]:
	"""Every pairwise overlap within `ranges`, merged."""
	commons: List[Range] = []
	for i in range(len(ranges)):
		for j in range(i + 1, len(ranges)):
			common = common_range(ranges[i], ranges[j])
			if common is not None:
				commons.append(common)
	return eliminated_ranges(commons)


def merge_ranges(r1: Range, r2: Range) -> Optional[Range]:
	"""Smallest range covering both, when they overlap or touch; otherwise None."""
	if common_range(r1, r2) is not None or r1.until == r2.from_ or r2.until == r1.from_:
		return Range.new(min(r1.from_, r2.from_), max(r1.until, r2.until))
	return None


def eliminated_ranges(ranges: Iterable[Range]) -> List[Range]:
	"""
	Merge ranges until no pair can be merged any further.

	The order of the survivors follows the first occurrence of each merged
	group in the input.
	"""
	out = list(ranges)
	i = 0
	while i < len(out):
		merged_any = False
		j = 0
		while j < len(out):
			if i != j:
				merged = merge_ranges(out[i], out[j])
				if merged is not None:
					out[i] = merged
					del out[j]
					if j < i:
						i -= 1
					merged_any = True
					break
			j += 1
		if not merged_any:
			i += 1
	return out


def erase_superset(ranges: Iterable[Range], erase_subset: bool) -> List[Range]:
	"""
	Drop ranges that strictly contain (erase_subset=False) or are strictly
	contained in (erase_subset=True) another range of the list.
	"""
	out = list(ranges)
	i = 0
	while i < len(out):
		j = i + 1
		while j < len(out):
			if erase_subset:
				drop_j = is_super_range(out[i], out[j])
				drop_i = is_super_range(out[j], out[i])
			else:
				drop_j = is_super_range(out[j], out[i])
				drop_i = is_super_range(out[i], out[j])
			if drop_j:
				del out[j]
			elif drop_i:
				del out[i]
				j = i + 1
			else:
				j += 1
		i += 1
	return out


def exclude_ranges(from_: Iterable[Range], excludes: Iterable[Range]) -> List[Range]:
	"""
	Subtract every range in `excludes` from every range in `from_`.

	A source range fully covered by an exclude disappears, a disjoint one is
	kept as is, and a partially covered one leaves up to two fragments just
	outside the excluded part. Fragments are processed again against every
	exclude, so multiple excludes carve the same source.
	"""
	excl = list(excludes)
	pending = list(from_)
	done: List[Range] = []
	while pending:
		src = pending.pop(0)
		for ex in excl:
			common = common_range(src, ex)
			if common is None:
				continue
			left = Range.new(src.from_, common.from_ - 1)
			right = Range.new(common.until + 1, src.until)
			pending.extend(r for r in (left, right) if r is not None)
			break
		else:
			done.append(src)
	return eliminated_ranges(done)


__all__ = [
	"Range",
	"is_super_range",
	"common_range",
	"common_ranges",
	"merge_ranges",
	"eliminated_ranges",
	"erase_superset",
	"exclude_ranges",
]
