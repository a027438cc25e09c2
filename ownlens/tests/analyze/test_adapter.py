#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Relations → per-local ranges."""

from ownlens.analyze.adapter import FactAdapter
from ownlens.analyze.body import SpanData
from ownlens.analyze.inputs import FunctionInput
from ownlens.analyze.location_table import Phase, RichLocation
from ownlens.core.ranges import Range


def _adapter(data: dict) -> FactAdapter:
	return FactAdapter(FunctionInput.from_dict(data))


def test_live_ranges_pair_start_and_mid(sample_input_dict):
	"""Each Start/Mid pair becomes one range from the start statement to the mid statement."""
	adapter = _adapter(sample_input_dict)
	assert adapter.accurate_live() == {1: [Range(0, 10), Range(11, 21)]}
	assert adapter.drop_live() == {}


def test_borrow_live_splits_by_mutability(sample_input_dict):
	shared, mutable = _adapter(sample_input_dict).borrow_live()
	assert shared == {1: [Range(11, 21)]}
	assert mutable == {}
	sample_input_dict["borrow_set"][0]["mutable"] = True
	shared, mutable = _adapter(sample_input_dict).borrow_live()
	assert shared == {}
	assert mutable == {1: [Range(11, 21)]}


def test_unknown_loans_are_ignored(sample_input_dict):
	sample_input_dict["output"]["loan_live_at"] = {"4": [9], "5": [9]}
	shared, mutable = _adapter(sample_input_dict).borrow_live()
	assert shared == {} and mutable == {}


def test_must_live_follows_origins_containing_the_loan(sample_input_dict):
	assert _adapter(sample_input_dict).must_live() == {1: [Range(0, 10)]}


def test_must_live_prefers_insensitive_output(sample_input_dict):
	"""The location-insensitive relations replace the precise ones for must-live."""
	insensitive = dict(sample_input_dict["output"])
	insensitive["origin_live_on_entry"] = {"4": [5], "5": [5]}
	sample_input_dict["output_insensitive"] = insensitive
	assert _adapter(sample_input_dict).must_live() == {1: [Range(11, 21)]}


def test_surplus_points_are_ignored(sample_input_dict):
	adapter = _adapter(sample_input_dict)
	locations = [
		RichLocation(Phase.START, 0, 1),
		RichLocation(Phase.MID, 0, 1),
		RichLocation(Phase.START, 0, 2),
	]
	assert adapter.rich_locations_to_ranges(locations) == [Range(0, 10)]


def test_spans_from_other_files_are_dropped(sample_input_dict):
	adapter = _adapter(sample_input_dict)
	assert adapter.range_from_span(SpanData(0, 10, "other.rs")) is None
	assert adapter.range_from_span(SpanData(0, 10, "main.rs")) == Range(0, 10)
	assert adapter.range_from_span(SpanData(5, 5)) is None


def test_is_drop(sample_input_dict):
	adapter = _adapter(sample_input_dict)
	assert adapter.is_drop(1)
	assert not adapter.is_drop(2)
