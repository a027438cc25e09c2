#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Byte → character → (line, character) conversions."""

from ownlens.core.text import SourceText, index_to_line_char, line_char_to_index


def test_source_text_maps_multibyte_characters():
	"""'é' takes two bytes but one character."""
	text = SourceText("héllo")
	assert text.loc(0) == 0
	assert text.loc(1) == 1
	assert text.loc(3) == 2
	assert text.loc(6) == 5
	assert text.loc(100) == len(text)


def test_source_text_respects_file_offset():
	"""Positions are relative to the source map; the file starts at `offset`."""
	text = SourceText("abc\ndef", offset=100)
	assert text.loc(100) == 0
	assert text.loc(104) == 4
	assert text.loc(50) == 0


def test_index_to_line_char():
	text = "ab\ncd\n"
	assert index_to_line_char(text, 0) == (0, 0)
	assert index_to_line_char(text, 3) == (1, 0)
	assert index_to_line_char(text, 4) == (1, 1)
	assert index_to_line_char(text, 100) == (2, 0)


def test_carriage_returns_are_not_columns():
	"""CRLF line endings keep the same columns as LF ones."""
	text = "ab\r\ncd"
	assert index_to_line_char(text, 4) == (1, 0)
	assert index_to_line_char(text, 3) == (0, 2)


def test_line_char_to_index_round_trips_and_clamps():
	"""Known positions invert; past-the-line and past-the-text positions clamp."""
	text = "ab\ncd"
	for idx in range(len(text)):
		line, col = index_to_line_char(text, idx)
		assert line_char_to_index(text, line, col) == idx
	assert line_char_to_index(text, 0, 10) == 2
	assert line_char_to_index(text, 9, 0) == len(text)
