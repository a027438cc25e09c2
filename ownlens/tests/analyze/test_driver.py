#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Concurrent per-unit driver."""

import json

import pytest

from ownlens.analyze.driver import AnalysisSession, SessionOptions, analyze_unit
from ownlens.analyze.inputs import FunctionInput
from ownlens.core.models import Workspace


def _inputs(sample_input_dict, count: int):
	out = []
	for fn_id in range(count):
		data = dict(sample_input_dict, fn_id=fn_id)
		out.append(FunctionInput.from_dict(data))
	return out


def test_each_function_is_one_workspace_line(sample_input_dict):
	lines = []
	session = analyze_unit(_inputs(sample_input_dict, 3), SessionOptions(crate_name="demo", max_workers=2), lines.append)
	assert len(lines) == 3
	merged = Workspace()
	for line in lines:
		ws = Workspace.from_dict(json.loads(line))
		assert list(ws.crates) == ["demo"]
		assert ws.function_count() == 1
		merged.merge(ws)
	assert sorted(f.fn_id for f in merged.crates["demo"].files["main.rs"].items) == [0, 1, 2]
	assert session.workspace.function_count() == 3
	assert session.failures == []


def test_failure_does_not_affect_siblings(sample_input_dict):
	"""A function with a point outside its body is recorded as failed; the rest is emitted."""
	bad = dict(sample_input_dict, fn_id=99, output={"var_live_on_entry": {"500": [1]}})
	inputs = _inputs(sample_input_dict, 2) + [FunctionInput.from_dict(bad)]
	lines = []
	session = analyze_unit(inputs, emit=lines.append)
	assert len(lines) == 2
	assert [f.fn_id for f in session.failures] == [99]
	assert session.failures[0].filename == "main.rs"


def test_session_drains_when_expected_count_is_reached(sample_input_dict):
	lines = []
	session = AnalysisSession(2, emit=lines.append)
	first, second = _inputs(sample_input_dict, 2)
	session.submit(first)
	assert not session.drained
	session.submit(second)
	assert session.drained
	assert len(lines) == 2
	with pytest.raises(RuntimeError):
		session.submit(first)


def test_close_drains_a_short_unit(sample_input_dict):
	lines = []
	with AnalysisSession(5, emit=lines.append) as session:
		session.submit(_inputs(sample_input_dict, 1)[0])
	assert session.drained
	assert len(lines) == 1
