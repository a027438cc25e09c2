# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Point-index ↔ (block, statement) mapping used by the solver relations.

The solver numbers control-flow points densely: every statement contributes
two points (its *start* and its *mid* phase), and every block reserves one
extra statement slot for its terminator. Block `b` therefore starts at

    sum((len(statements(k)) + 1) * 2 for k < b)
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from ownlens.core.errors import FactFormatError


class Phase(Enum):
	"""Which half of a statement a point denotes."""

	START = "Start"
	MID = "Mid"


_RICH_RE = re.compile(r"^(Start|Mid)\(bb(\d+)\[(\d+)\]\)$")


@dataclass(frozen=True)
class RichLocation:
	"""A CFG point tagged with its phase; `statement_index == len(statements)` is the terminator."""

	phase: Phase
	block: int
	statement_index: int

	@property
	def key(self) -> tuple[int, int]:
		return (self.block, self.statement_index)

	def __str__(self) -> str:
		return f"{self.phase.value}(bb{self.block}[{self.statement_index}])"

	@classmethod
	def parse(cls, text: str) -> "RichLocation":
		"""Parse the solver's textual notation, e.g. `Mid(bb3[2])`."""
		m = _RICH_RE.match(text.strip())
		if m is None:
			raise FactFormatError(f"invalid rich location '{text}'")
		return cls(Phase(m.group(1)), int(m.group(2)), int(m.group(3)))


class LocationTable:
	"""
	Dense point numbering for one function body.

	Built from the statement count of each basic block, in block order.
	"""

	def __init__(self, statement_counts: Sequence[int]) -> None:
		self._counts = list(statement_counts)
		self.statements_before_block: List[int] = []
		num_points = 0
		for count in self._counts:
			self.statements_before_block.append(num_points)
			num_points += (count + 1) * 2
		self.num_points = num_points

	def to_rich_location(self, point_index: int) -> RichLocation:
		if point_index < 0 or point_index >= self.num_points:
			raise FactFormatError(f"point index {point_index} out of range (0..{self.num_points - 1})")
		# Greatest block start not exceeding the point. Empty tables never get here.
		block = bisect_right(self.statements_before_block, point_index) - 1
		offset = point_index - self.statements_before_block[block]
		phase = Phase.START if offset % 2 == 0 else Phase.MID
		return RichLocation(phase, block, offset // 2)

	def point_index(self, loc: RichLocation) -> int:
		"""Inverse of `to_rich_location`."""
		if loc.block < 0 or loc.block >= len(self._counts):
			raise FactFormatError(f"block bb{loc.block} out of range")
		if loc.statement_index < 0 or loc.statement_index > self._counts[loc.block]:
			raise FactFormatError(f"statement index out of range in {loc}")
		base = self.statements_before_block[loc.block] + loc.statement_index * 2
		return base if loc.phase is Phase.START else base + 1


__all__ = ["Phase", "RichLocation", "LocationTable"]
