# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from ownlens.analyze.driver import SessionOptions, analyze_unit
from ownlens.analyze.inputs import load_function_inputs
from ownlens.core.errors import OwnlensError
from ownlens.lsp.backend import Backend, BackendOptions, CommandSource, IterableSource
from ownlens.lsp.protocol import AnalysisStatus, CursorRequest, Position

LOG_ENV = "OWNLENS_LOG"
DEFAULT_CACHE_DIR = Path("target") / "ownlens"


def _configure_logging(level: str | None, default: str) -> None:
	name = (level or os.environ.get(LOG_ENV) or default).upper()
	logging.basicConfig(
		level=getattr(logging, name, logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
		stream=sys.stderr,
	)


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="ownlens", description="Ownership and lifetime decorations from borrow-checker facts")
	p.add_argument("--log-level", type=str, default=None, help=f"Logging level (default: ${LOG_ENV} or info)")
	sub = p.add_subparsers(dest="cmd", required=True)

	analyze = sub.add_parser("analyze", help="Analyze function inputs and print one Workspace JSON line per function")
	analyze.add_argument("inputs", type=Path, nargs="+", help="Function input files (JSON object, array, or JSON lines)")
	analyze.add_argument("--crate", type=str, default="main", help="Crate name for the emitted workspace (default: main)")
	analyze.add_argument("--workers", type=int, default=8, help="Worker threads (default: 8)")
	analyze.add_argument("--out", type=Path, default=None, help="Write lines to this file instead of stdout")

	check = sub.add_parser("check", help="Load a Workspace stream into the backend and report the status")
	src = check.add_mutually_exclusive_group(required=True)
	src.add_argument("--stream", type=Path, help="File of Workspace JSON lines ('-' for stdin)")
	src.add_argument("--command", nargs=argparse.REMAINDER, help="Analyzer command whose stdout is the stream")
	check.add_argument("--cache-dir", type=Path, default=DEFAULT_CACHE_DIR, help="Cache directory (default: ./target/ownlens)")
	check.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

	cursor = sub.add_parser("cursor", help="Answer one cursor query from the cached workspace")
	cursor.add_argument("file", type=Path, help="Source file the cursor is in")
	cursor.add_argument("--line", type=int, required=True, help="0-based line")
	cursor.add_argument("--character", type=int, required=True, help="0-based character")
	cursor.add_argument("--cache-dir", type=Path, default=DEFAULT_CACHE_DIR, help="Cache directory (default: ./target/ownlens)")
	cursor.add_argument("--workspace", type=Path, default=None, help="Workspace JSON lines to use instead of the cache")
	cursor.add_argument("--root", type=Path, default=None, help="Directory relative file keys are resolved against")

	clean = sub.add_parser("clean", help="Remove the cached workspace")
	clean.add_argument("--cache-dir", type=Path, default=DEFAULT_CACHE_DIR, help="Cache directory (default: ./target/ownlens)")

	return p


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	_configure_logging(args.log_level, "warning" if args.cmd == "cursor" else "info")

	if args.cmd == "analyze":
		opts = SessionOptions(crate_name=args.crate, max_workers=max(1, args.workers))
		try:
			inputs = [item for path in args.inputs for item in load_function_inputs(path)]
		except (OSError, OwnlensError) as err:
			print(str(err), file=sys.stderr)
			return 2
		if args.out is not None:
			with args.out.open("w", encoding="utf-8") as out:
				session = analyze_unit(inputs, opts, emit=lambda line: out.write(line + "\n"))
		else:
			session = analyze_unit(inputs, opts)
		for failure in session.failures:
			print(f"fn {failure.fn_id} in {failure.filename}: {failure.message}", file=sys.stderr)
		return 1 if session.failures else 0

	if args.cmd == "check":
		backend = Backend(BackendOptions(cache_dir=args.cache_dir, load_cache=False))
		if args.command:
			source = CommandSource(args.command)
			backend.analyze(source)
			backend.wait()
		elif str(args.stream) == "-":
			backend.analyze(IterableSource(sys.stdin))
			backend.wait()
		else:
			try:
				with args.stream.open("r", encoding="utf-8") as f:
					backend.analyze(IterableSource(f))
					backend.wait()
			except OSError as err:
				print(str(err), file=sys.stderr)
				return 2
		status = backend.status()
		snapshot = backend.snapshot()
		count = snapshot.function_count() if snapshot is not None else 0
		if args.json:
			print(json.dumps({"status": status.value, "functions": count}, sort_keys=True, separators=(",", ":")))
		else:
			print(f"{status.value}: {count} functions")
		return 0 if status is AnalysisStatus.FINISHED else 1

	if args.cmd == "cursor":
		file_path = args.file.resolve()
		root = args.root.resolve() if args.root is not None else Path.cwd()
		backend = Backend(
			BackendOptions(
				cache_dir=args.cache_dir if args.workspace is None else None,
				root=root,
			)
		)
		if args.workspace is not None:
			with args.workspace.open("r", encoding="utf-8") as f:
				backend.analyze(IterableSource(f))
				backend.wait()
		request = CursorRequest(Position(args.line, args.character), file_path.as_uri())
		print(json.dumps(backend.cursor(request).to_dict(), sort_keys=True))
		return 0

	if args.cmd == "clean":
		Backend(BackendOptions(cache_dir=args.cache_dir, load_cache=False)).clean()
		return 0

	raise AssertionError("unreachable")


if __name__ == "__main__":
	raise SystemExit(main())
