#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Dense point numbering: two points per statement, one extra slot per block."""

import pytest

from ownlens.analyze.location_table import LocationTable, Phase, RichLocation
from ownlens.core.errors import FactFormatError


def test_block_starts_and_point_count():
	table = LocationTable([2, 0, 1])
	assert table.statements_before_block == [0, 6, 8]
	assert table.num_points == 12


def test_point_to_rich_location():
	"""Even offsets are Start, odd offsets Mid; the last slot is the terminator."""
	table = LocationTable([2, 0, 1])
	assert table.to_rich_location(0) == RichLocation(Phase.START, 0, 0)
	assert table.to_rich_location(3) == RichLocation(Phase.MID, 0, 1)
	assert table.to_rich_location(5) == RichLocation(Phase.MID, 0, 2)
	assert table.to_rich_location(6) == RichLocation(Phase.START, 1, 0)
	assert table.to_rich_location(7) == RichLocation(Phase.MID, 1, 0)
	assert table.to_rich_location(11) == RichLocation(Phase.MID, 2, 1)


def test_point_index_inverts_to_rich_location():
	table = LocationTable([3, 1, 0, 2])
	for point in range(table.num_points):
		assert table.point_index(table.to_rich_location(point)) == point


def test_out_of_range_points_are_rejected():
	table = LocationTable([1])
	with pytest.raises(FactFormatError):
		table.to_rich_location(4)
	with pytest.raises(FactFormatError):
		table.to_rich_location(-1)
	with pytest.raises(FactFormatError):
		table.point_index(RichLocation(Phase.START, 0, 2))
	with pytest.raises(FactFormatError):
		LocationTable([]).to_rich_location(0)


def test_rich_location_text_form():
	loc = RichLocation.parse("Mid(bb3[2])")
	assert loc == RichLocation(Phase.MID, 3, 2)
	assert str(loc) == "Mid(bb3[2])"
	assert loc.key == (3, 2)
	with pytest.raises(FactFormatError):
		RichLocation.parse("Middle(bb3[2])")
