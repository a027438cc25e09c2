# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parser for the solver's tab-separated fact dumps.

Each line of a `<relation>.facts` file is one tuple of quoted atoms:

    "_3"	"Mid(bb0[1])"
    "'?2"	"bw0"

Atoms are locals (`_N`), loans (`bwN`), origins (`'?N`), CFG points
(`Start(bbB[S])` / `Mid(bbB[S])`) or bare integers. The grammar is small, but
going through lark keeps the error positions precise for the best-effort
loader, which skips lines that do not parse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple, Union

from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from ownlens.core.errors import FactFormatError
from .location_table import Phase, RichLocation

log = logging.getLogger(__name__)

_GRAMMAR = r"""
fact_tuple: atom+

?atom: "\"" value "\""

?value: point
	| local
	| loan
	| origin
	| INT -> number

point: phase "(" "bb" INT "[" INT "]" ")"
phase: "Start" -> start_phase
	| "Mid" -> mid_phase

local: "_" INT
loan: "bw" INT
origin: "'?" INT

%import common.INT
%import common.WS
%ignore WS
"""


@dataclass(frozen=True)
class LocalAtom:
	index: int


@dataclass(frozen=True)
class LoanAtom:
	index: int


@dataclass(frozen=True)
class OriginAtom:
	index: int


Atom = Union[LocalAtom, LoanAtom, OriginAtom, RichLocation, int]


class _FactTransformer(Transformer):
	def fact_tuple(self, items):
		return tuple(items)

	def number(self, items):
		return int(items[0])

	def start_phase(self, _items):
		return Phase.START

	def mid_phase(self, _items):
		return Phase.MID

	def point(self, items):
		phase, block, stmt = items
		return RichLocation(phase, int(block), int(stmt))

	def local(self, items):
		return LocalAtom(int(items[0]))

	def loan(self, items):
		return LoanAtom(int(items[0]))

	def origin(self, items):
		return OriginAtom(int(items[0]))


_PARSER = Lark(
	_GRAMMAR,
	parser="lalr",
	lexer="basic",
	start="fact_tuple",
	transformer=_FactTransformer(),
)


def parse_fact_line(line: str) -> Tuple[Atom, ...]:
	"""Parse one fact tuple; raises FactFormatError on malformed input."""
	try:
		return _PARSER.parse(line)
	except UnexpectedInput as err:
		raise FactFormatError(f"malformed fact tuple at column {err.column}: {line.strip()!r}") from err


def read_fact_file(path: Path) -> Iterator[Tuple[Atom, ...]]:
	"""
	Yield the tuples of one fact file.

	Blank lines are ignored; malformed lines are logged and skipped so a
	partially written dump still contributes everything that parsed.
	"""
	with path.open("r", encoding="utf-8") as fh:
		for line_no, line in enumerate(fh, start=1):
			if not line.strip():
				continue
			try:
				yield parse_fact_line(line)
			except FactFormatError as err:
				log.debug("skipping %s:%d: %s", path, line_no, err.message)


__all__ = [
	"LocalAtom",
	"LoanAtom",
	"OriginAtom",
	"Atom",
	"parse_fact_line",
	"read_fact_file",
]
