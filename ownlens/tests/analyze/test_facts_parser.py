#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Fact dump parsing and directory loading."""

import pytest

from ownlens.analyze.facts_parser import LoanAtom, LocalAtom, OriginAtom, parse_fact_line, read_fact_file
from ownlens.analyze.location_table import LocationTable, Phase, RichLocation
from ownlens.analyze.relations import load_facts_dir
from ownlens.core.errors import FactFormatError


def test_parse_point_and_local():
	assert parse_fact_line('"_3"\t"Mid(bb0[1])"\n') == (LocalAtom(3), RichLocation(Phase.MID, 0, 1))


def test_parse_origin_loan_and_number():
	assert parse_fact_line("\"'?2\"\t\"bw0\"\t\"17\"") == (OriginAtom(2), LoanAtom(0), 17)


def test_parse_rejects_garbage():
	with pytest.raises(FactFormatError):
		parse_fact_line('"_3"\t"Later(bb0[1])"')
	with pytest.raises(FactFormatError):
		parse_fact_line("_3 bw0")


def test_read_fact_file_skips_bad_lines(tmp_path):
	"""Blank and malformed lines are dropped; the rest still loads."""
	path = tmp_path / "loan_live_at.facts"
	path.write_text('"Start(bb0[0])"\t"bw1"\n\nnot a tuple\n"Mid(bb0[0])"\t"bw1"\n', encoding="utf-8")
	rows = list(read_fact_file(path))
	assert rows == [
		(RichLocation(Phase.START, 0, 0), LoanAtom(1)),
		(RichLocation(Phase.MID, 0, 0), LoanAtom(1)),
	]


def test_load_facts_dir(tmp_path):
	"""Relations are keyed by dense point index; unknown points are skipped."""
	(tmp_path / "var_live_on_entry.facts").write_text(
		'"Start(bb0[1])"\t"_1"\n"Mid(bb0[1])"\t"_1"\n"Start(bb5[0])"\t"_1"\n', encoding="utf-8"
	)
	(tmp_path / "origin_contains_loan_anywhere.facts").write_text("\"'?2\"\t\"bw0\"\n", encoding="utf-8")
	(tmp_path / "var_dropped_at.facts").write_text('"_1"\t"Mid(bb0[2])"\n', encoding="utf-8")
	solver_input, output = load_facts_dir(tmp_path, LocationTable([2]))
	assert output.var_live_on_entry == {2: [1], 3: [1]}
	assert output.origin_contains_loan_anywhere == {2: [0]}
	assert output.loan_live_at == {}
	assert solver_input.var_dropped_at == [(1, 5)]
	assert solver_input.dropped_locals() == {1}


def test_load_facts_dir_requires_directory(tmp_path):
	with pytest.raises(FactFormatError):
		load_facts_dir(tmp_path / "missing", LocationTable([1]))
