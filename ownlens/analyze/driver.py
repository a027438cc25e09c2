# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compilation-unit driver.

The host compiler hands over functions one at a time as their solver facts
become available. Each function is analyzed on a worker thread; once the
number of submitted functions reaches the number the unit is expected to
contain, the session drains: every finished function is written out as one
`Workspace` JSON line, so the editor side can merge results as they stream.

All run state lives on the `AnalysisSession` object; nothing is global.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from ownlens.core.models import Function, Workspace
from .analyzer import FunctionAnalyzer
from .inputs import FunctionInput

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
	crate_name: str = "main"
	max_workers: int = 8


@dataclass(frozen=True)
class AnalysisFailure:
	"""A function whose analysis raised; recorded, never retried."""

	fn_id: int
	filename: str
	message: str

	def to_dict(self) -> dict[str, Any]:
		return {"fn_id": self.fn_id, "filename": self.filename, "message": self.message}


def analyze_function(fn_input: FunctionInput) -> tuple[str, Function]:
	return FunctionAnalyzer(fn_input).analyze()


def _print_line(line: str) -> None:
	sys.stdout.write(line + "\n")
	sys.stdout.flush()


class AnalysisSession:
	"""
	Analyze the functions of one compilation unit concurrently.

	`expected` is the number of functions with a body in the unit; draining
	starts automatically when the last one is submitted. `emit` receives each
	result as a serialized Workspace line (stdout by default).
	"""

	def __init__(
		self,
		expected: int,
		options: SessionOptions = SessionOptions(),
		emit: Optional[Callable[[str], None]] = None,
	) -> None:
		self.expected = expected
		self.options = options
		self.emit = emit if emit is not None else _print_line
		self.workspace = Workspace()
		self.failures: List[AnalysisFailure] = []
		self.seen = 0
		self.drained = False
		self._lock = threading.Lock()
		self._executor = ThreadPoolExecutor(max_workers=options.max_workers)
		self._pending: Dict[Future, FunctionInput] = {}

	def __enter__(self) -> "AnalysisSession":
		return self

	def __exit__(self, *exc: object) -> None:
		self.close()

	def submit(self, fn_input: FunctionInput) -> None:
		with self._lock:
			if self.drained:
				raise RuntimeError("session already drained")
			future = self._executor.submit(analyze_function, fn_input)
			self._pending[future] = fn_input
			self.seen += 1
			current = self.seen
		log.info("borrow checked: %d / %d", current, self.expected)
		if current == self.expected:
			self.drain()

	def drain(self) -> None:
		"""Wait for every submitted function and emit its result."""
		with self._lock:
			if self.drained:
				return
			self.drained = True
			pending = dict(self._pending)
			self._pending.clear()
		for future in as_completed(pending):
			fn_input = pending[future]
			try:
				filename, function = future.result()
			except Exception as err:
				log.error("analysis of fn %d in %s failed: %s", fn_input.fn_id, fn_input.filename, err)
				self.failures.append(AnalysisFailure(fn_input.fn_id, fn_input.filename, str(err)))
				continue
			ws = Workspace.single(self.options.crate_name, filename, function)
			self.workspace.merge(ws)
			log.info("analyzed one item of %s", filename)
			self.emit(json.dumps(ws.to_dict()))
		self._executor.shutdown(wait=True)

	def close(self) -> None:
		"""Drain what was submitted (even if fewer than expected) and release the pool."""
		if not self.drained:
			if self.seen != self.expected:
				log.warning("closing session with %d of %d functions submitted", self.seen, self.expected)
			self.drain()


def analyze_unit(
	inputs: Iterable[FunctionInput],
	options: SessionOptions = SessionOptions(),
	emit: Optional[Callable[[str], None]] = None,
) -> AnalysisSession:
	"""Analyze a whole, already-loaded compilation unit."""
	items = list(inputs)
	session = AnalysisSession(len(items), options, emit)
	with session:
		for item in items:
			session.submit(item)
	return session


__all__ = ["SessionOptions", "AnalysisFailure", "AnalysisSession", "analyze_function", "analyze_unit"]
