# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source positions.

Compilers report spans as UTF-8 byte offsets into a global source map; editors
talk in (line, character) pairs. Everything in between uses `Loc`: a
zero-based character (code point) index into one file's decoded text.
"""

from __future__ import annotations

from bisect import bisect_left
from typing import List, Tuple

Loc = int  # character index into one source file; never negative


class SourceText:
	"""
	Decoded text of one source file plus a byte→character index.

	`offset` is the file's start position in the compiler's source map; byte
	positions handed to `loc()` are relative to the whole map.
	"""

	def __init__(self, text: str, offset: int = 0) -> None:
		self.text = text
		self.offset = offset
		starts: List[int] = []
		pos = 0
		for ch in text:
			starts.append(pos)
			pos += len(ch.encode("utf-8"))
		self._byte_starts = starts

	def __len__(self) -> int:
		return len(self.text)

	def loc(self, byte_pos: int) -> Loc:
		"""
		Convert a source-map byte position into a character index.

		Returns the first character whose byte offset is not below the
		(file-relative) position; positions at or past the end map to the
		text length.
		"""
		rel = max(byte_pos - self.offset, 0)
		return bisect_left(self._byte_starts, rel)


def index_to_line_char(text: str, idx: Loc) -> Tuple[int, int]:
	"""
	Convert a character index into a (line, character) pair.

	Carriage returns are not counted as columns. An index at or past the
	end of the text yields the position just after the last character.
	"""
	line = 0
	col = 0
	for i, ch in enumerate(text):
		if i == idx:
			return line, col
		if ch == "\n":
			line += 1
			col = 0
		elif ch != "\r":
			col += 1
	return line, col


def line_char_to_index(text: str, line: int, character: int) -> Loc:
	"""Inverse of `index_to_line_char`; unknown positions clamp to the text end."""
	col = 0
	for i, ch in enumerate(text):
		if line == 0 and col == character:
			return i
		if ch == "\n":
			if line == 0:
				# character past the end of the requested line
				return i
			line -= 1
			col = 0
		elif ch != "\r":
			col += 1
	return len(text)


__all__ = ["Loc", "SourceText", "index_to_line_char", "line_char_to_index"]
