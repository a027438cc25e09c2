# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Query backend: owns the analyzed snapshot and answers cursor queries.

Lifecycle of an analysis run:
  1. `analyze(source)` cancels the previous run (its external process is
     terminated) and starts a new one on a background thread;
  2. the run reads Workspace JSON lines from its source into a private
     workspace, skipping lines that do not parse;
  3. when the source is exhausted and the run was not cancelled, the
     private workspace replaces the snapshot under the write lock and is
     written to the cache file.

Queries take the read lock and always see a complete snapshot. While a run
is in flight they are answered from the previous snapshot with the
`analyzing` status.
"""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from ownlens.core.errors import FactFormatError
from ownlens.core.models import Workspace
from ownlens.core.text import Loc, line_char_to_index
from ownlens.core.visitor import mir_visit
from .decoration import CalcDecos, Deco, SelectLocal
from .protocol import AnalysisStatus, CursorRequest, Decorations
from .rwlock import ReadWriteLock

log = logging.getLogger(__name__)

CACHE_FILE_NAME = "cache.json"

# Everything a wrong-shaped Workspace document can raise while decoding.
_DECODE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, FactFormatError)


@dataclass(frozen=True)
class BackendOptions:
	# Directory holding cache.json; None disables the cache.
	cache_dir: Optional[Path] = None
	load_cache: bool = True
	# Relative file keys in the workspace are resolved against this directory.
	root: Optional[Path] = None


class IterableSource:
	"""Line source over an in-memory iterable (or an open file)."""

	def __init__(self, lines: Iterable[str]) -> None:
		self._lines = lines

	def __iter__(self) -> Iterator[str]:
		return iter(self._lines)

	def close(self) -> None:
		pass


class CommandSource:
	"""
	Line source reading the stdout of an external analyzer process.

	`close()` terminates the process; it is safe to call from another thread
	while the run is iterating.
	"""

	def __init__(self, argv: Sequence[str], *, cwd: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> None:
		self.argv = list(argv)
		self.cwd = cwd
		self.env = dict(env) if env is not None else None
		self._proc: Optional[subprocess.Popen] = None
		self._closed = threading.Event()

	def __iter__(self) -> Iterator[str]:
		if self._closed.is_set():
			return
		log.info("start checking: %s", " ".join(self.argv))
		self._proc = subprocess.Popen(
			self.argv,
			cwd=self.cwd,
			env=self.env,
			stdout=subprocess.PIPE,
			stderr=subprocess.DEVNULL,
			text=True,
			encoding="utf-8",
			errors="replace",
		)
		assert self._proc.stdout is not None
		try:
			for line in self._proc.stdout:
				yield line
		finally:
			self._proc.stdout.close()
			self._proc.wait()
			log.info("check finished with exit code %s", self._proc.returncode)

	def close(self) -> None:
		self._closed.set()
		proc = self._proc
		if proc is not None and proc.poll() is None:
			proc.terminate()
			try:
				proc.wait(timeout=5)
			except subprocess.TimeoutExpired:
				proc.kill()


LineSource = Union[IterableSource, CommandSource]


def parse_workspace_line(line: str) -> Optional[Workspace]:
	"""Parse one streamed line; None for anything that is not a Workspace object."""
	line = line.strip()
	if not line.startswith("{"):
		return None
	try:
		return Workspace.from_dict(json.loads(line))
	except _DECODE_ERRORS as err:
		log.debug("skipping unparsable line: %s", err)
		return None


class AnalysisRun:
	"""One background read of a line source into a private workspace."""

	def __init__(self, source: LineSource, on_complete: Callable[["AnalysisRun"], None]) -> None:
		self.source = source
		self.workspace = Workspace()
		self.lines_read = 0
		self.lines_skipped = 0
		self.error: Optional[BaseException] = None
		self._on_complete = on_complete
		self._cancelled = threading.Event()
		self._finished = threading.Event()
		self._thread = threading.Thread(target=self._run, name="ownlens-analysis", daemon=True)

	@property
	def cancelled(self) -> bool:
		return self._cancelled.is_set()

	@property
	def finished(self) -> bool:
		return self._finished.is_set()

	def start(self) -> None:
		self._thread.start()

	def _run(self) -> None:
		try:
			for line in self.source:
				if self._cancelled.is_set():
					break
				if not line.strip():
					continue
				self.lines_read += 1
				ws = parse_workspace_line(line)
				if ws is None:
					self.lines_skipped += 1
					continue
				self.workspace.merge(ws)
		except OSError as err:
			log.error("analysis source failed: %s", err)
			self.error = err
		finally:
			try:
				if not self._cancelled.is_set():
					self._on_complete(self)
			finally:
				self._finished.set()

	def cancel(self) -> None:
		"""Stop reading and terminate the source; the snapshot is left untouched."""
		self._cancelled.set()
		self.source.close()

	def join(self, timeout: Optional[float] = None) -> bool:
		return self._finished.wait(timeout)


class Backend:
	def __init__(self, options: BackendOptions = BackendOptions()) -> None:
		self.options = options
		self._lock = ReadWriteLock()
		self._snapshot: Optional[Workspace] = None
		self._last_run_failed = False
		self._run: Optional[AnalysisRun] = None
		self._run_lock = threading.Lock()
		if options.cache_dir is not None and options.load_cache:
			self.load_cache()

	@property
	def cache_path(self) -> Optional[Path]:
		if self.options.cache_dir is None:
			return None
		return self.options.cache_dir / CACHE_FILE_NAME

	# Snapshot / status

	@property
	def is_analyzed(self) -> bool:
		with self._lock.read():
			return self._snapshot is not None

	def snapshot(self) -> Optional[Workspace]:
		with self._lock.read():
			return self._snapshot

	def status(self) -> AnalysisStatus:
		with self._lock.read():
			return self._status_locked()

	def _status_locked(self) -> AnalysisStatus:
		run = self._run
		if run is not None and not run.finished:
			return AnalysisStatus.ANALYZING
		if self._snapshot is None or self._snapshot.function_count() == 0 or self._last_run_failed:
			return AnalysisStatus.ERROR
		return AnalysisStatus.FINISHED

	# Runs

	def analyze(self, source: LineSource) -> AnalysisRun:
		"""Start a new run, cancelling the one in flight."""
		with self._run_lock:
			previous = self._run
			if previous is not None and not previous.finished:
				log.info("stop running analysis")
				previous.cancel()
			run = AnalysisRun(source, self._complete)
			self._run = run
		if previous is not None:
			previous.join()
		log.info("start analysis")
		run.start()
		return run

	def wait(self, timeout: Optional[float] = None) -> bool:
		"""Block until the current run (if any) has finished."""
		run = self._run
		return run.join(timeout) if run is not None else True

	def shutdown(self) -> None:
		with self._run_lock:
			run = self._run
			if run is not None and not run.finished:
				run.cancel()
		if run is not None:
			run.join()

	def _complete(self, run: AnalysisRun) -> None:
		with self._run_lock:
			if run is not self._run or run.cancelled:
				return
			count = run.workspace.function_count() if run.error is None else 0
			with self._lock.write():
				if count > 0:
					self._snapshot = run.workspace
					self._last_run_failed = False
				else:
					self._last_run_failed = True
			log.info("analysis finished: %d functions, %d lines skipped", count, run.lines_skipped)
			if count > 0:
				self.write_cache(run.workspace)

	# Cache

	def load_cache(self) -> bool:
		path = self.cache_path
		if path is None or not path.is_file():
			return False
		try:
			ws = Workspace.from_dict(json.loads(path.read_text(encoding="utf-8")))
		except (OSError, *_DECODE_ERRORS) as err:
			log.warning("ignoring unreadable cache %s: %s", path, err)
			return False
		with self._lock.write():
			self._snapshot = ws
		log.info("loaded %d cached functions from %s", ws.function_count(), path)
		return True

	def write_cache(self, ws: Workspace) -> None:
		path = self.cache_path
		if path is None:
			return
		try:
			path.parent.mkdir(parents=True, exist_ok=True)
			tmp = path.with_suffix(".tmp")
			tmp.write_text(json.dumps(ws.to_dict()), encoding="utf-8")
			tmp.replace(path)
		except OSError as err:
			log.warning("failed to write cache %s: %s", path, err)

	# Queries

	def _matches(self, key: str, path: Path) -> bool:
		key_path = Path(key)
		if not key_path.is_absolute() and self.options.root is not None:
			key_path = self.options.root / key_path
		return key_path == path

	def decorations_for(self, path: Path, position: Loc) -> List[Deco]:
		"""Resolved decorations for the local under `position` in `path`."""
		with self._lock.read():
			if self._snapshot is None:
				return []
			functions = list(self._snapshot.functions_in(lambda key: self._matches(key, path)))
			selector = SelectLocal(position)
			for fn in functions:
				mir_visit(fn, selector)
			selected = selector.selected()
			if selected is None:
				return []
			calc = CalcDecos([selected])
			for fn in functions:
				mir_visit(fn, calc)
		calc.handle_overlapping()
		return calc.decorations()

	def cursor(self, request: Union[CursorRequest, Mapping], text: Optional[str] = None) -> Decorations:
		"""
		Answer one cursor query.

		`text` is the document content when the editor has it; otherwise the
		file is read from disk. Files without facts give an empty list and
		the current status.
		"""
		if not isinstance(request, CursorRequest):
			request = CursorRequest.from_dict(request)
		with self._lock.read():
			is_analyzed = self._snapshot is not None
			status = self._status_locked()
		path = request.path()
		if path is None:
			return Decorations(is_analyzed, status)
		if text is None:
			try:
				text = path.read_text(encoding="utf-8")
			except OSError:
				return Decorations(is_analyzed, status)
		pos = line_char_to_index(text, request.position.line, request.position.character)
		decos = self.decorations_for(path, pos)
		return Decorations(is_analyzed, status, path, [d.to_lsp_dict(text) for d in decos])

	def clean(self) -> None:
		path = self.cache_path
		if path is not None and path.exists():
			path.unlink()


__all__ = [
	"BackendOptions",
	"IterableSource",
	"CommandSource",
	"LineSource",
	"AnalysisRun",
	"Backend",
	"parse_workspace_line",
	"CACHE_FILE_NAME",
]
