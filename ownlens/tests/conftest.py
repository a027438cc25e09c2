# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import copy

import pytest

# Ten-character groups so that byte offset == character index == column.
SAMPLE_SOURCE = "0123456789" * 4

# fn with locals _0 (return), _1 `s` and _2 `r = &s`:
#   bb0[0] StorageLive(_1)   span [0, 10]
#   bb0[1] _1 = <other>      span [0, 10]
#   bb0[2] _2 = &_1          span [11, 21]
#   bb0[3] drop(_1)          span [22, 30]
#   bb1[0] return            span [31, 32]
SAMPLE_INPUT = {
	"fn_id": 7,
	"file": "main.rs",
	"source": SAMPLE_SOURCE,
	"body": {
		"local_decls": [{"ty": "()"}, {"ty": "String"}, {"ty": "&String"}],
		"var_debug_info": [
			{"name": "s", "local": 1, "span": {"lo": 4, "hi": 5}},
			{"name": "r", "local": 2, "span": {"lo": 15, "hi": 16}},
		],
		"basic_blocks": [
			{
				"statements": [
					{"kind": "storage_live", "local": 1, "span": {"lo": 0, "hi": 10}},
					{"kind": "assign", "place": 1, "span": {"lo": 0, "hi": 10}, "rvalue": {"kind": "other"}},
					{
						"kind": "assign",
						"place": 2,
						"span": {"lo": 11, "hi": 21},
						"rvalue": {"kind": "ref", "place": 1, "mutable": False},
					},
				],
				"terminator": {"kind": "drop", "place": 1, "span": {"lo": 22, "hi": 30}},
			},
			{"statements": [], "terminator": {"kind": "return", "span": {"lo": 31, "hi": 32}}},
		],
	},
	"borrow_set": [{"loan": 0, "local": 1, "mutable": False}],
	"input": {"var_dropped_at": [[1, 6]]},
	"output": {
		# Start/Mid of bb0[1] and bb0[2]
		"var_live_on_entry": {"2": [1], "3": [1], "4": [1], "5": [1]},
		"loan_live_at": {"4": [0], "5": [0]},
		"origin_live_on_entry": {"2": [5], "3": [5]},
		"origin_contains_loan_anywhere": {"5": [0]},
	},
}


@pytest.fixture
def sample_input_dict() -> dict:
	"""A fresh, mutable copy of the sample function input."""
	return copy.deepcopy(SAMPLE_INPUT)


@pytest.fixture
def sample_source() -> str:
	return SAMPLE_SOURCE
