# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-function analysis input: body + solver relations + source text.

A compilation unit is a JSON array of these objects, or a JSON-lines file
with one object per line (`load_function_inputs` accepts both).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ownlens.core.errors import FactFormatError
from .body import MirBody
from .location_table import LocationTable
from .relations import BorrowSet, SolverInput, SolverOutput, load_facts_dir

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunctionInput:
	fn_id: int
	filename: str
	source: str
	offset: int
	body: MirBody
	borrow_set: BorrowSet
	solver_input: SolverInput
	output: SolverOutput
	# Location-insensitive solver output; over-approximates regions, which is
	# what the must-live view wants. None means "use `output`".
	output_insensitive: Optional[SolverOutput] = None

	@property
	def must_live_output(self) -> SolverOutput:
		return self.output_insensitive if self.output_insensitive is not None else self.output

	@classmethod
	def from_dict(cls, data: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> "FunctionInput":
		"""
		Build an input from its JSON object.

		`source` may be omitted, in which case `file` is read from disk
		(relative to `base_dir`). `facts_dir` may replace the inline
		`input`/`output` relations.
		"""
		if not isinstance(data, Mapping):
			raise FactFormatError("function input must be an object")
		try:
			fn_id = int(data["fn_id"])
			filename = str(data["file"])
		except (KeyError, TypeError, ValueError) as err:
			raise FactFormatError("function input needs 'fn_id' and 'file'") from err
		body = MirBody.from_dict(data.get("body") or {})
		source = data.get("source")
		if source is None:
			path = Path(filename)
			if not path.is_absolute() and base_dir is not None:
				path = base_dir / path
			try:
				source = path.read_text(encoding="utf-8")
			except OSError as err:
				raise FactFormatError(f"cannot read source: {err}", path=str(path), fn_id=fn_id) from err
		facts_dir = data.get("facts_dir")
		if facts_dir is not None:
			fdir = Path(facts_dir)
			if not fdir.is_absolute() and base_dir is not None:
				fdir = base_dir / fdir
			solver_input, output = load_facts_dir(fdir, LocationTable(body.statement_counts()))
		else:
			solver_input = SolverInput.from_dict(data.get("input"))
			output = SolverOutput.from_dict(data.get("output"))
		insensitive = data.get("output_insensitive")
		return cls(
			fn_id=fn_id,
			filename=filename,
			source=str(source),
			offset=int(data.get("offset", 0)),
			body=body,
			borrow_set=BorrowSet.from_list(data.get("borrow_set")),
			solver_input=solver_input,
			output=output,
			output_insensitive=SolverOutput.from_dict(insensitive) if insensitive is not None else None,
		)


def load_function_inputs(path: Path) -> List[FunctionInput]:
	"""
	Read a compilation unit: a JSON array, a single object, or JSON lines.

	In the JSON-lines form a malformed line is logged and skipped.
	"""
	text = path.read_text(encoding="utf-8")
	base_dir = path.parent
	try:
		doc = json.loads(text)
	except json.JSONDecodeError:
		doc = None
	if isinstance(doc, list):
		return [FunctionInput.from_dict(item, base_dir=base_dir) for item in doc]
	if isinstance(doc, dict):
		return [FunctionInput.from_dict(doc, base_dir=base_dir)]
	inputs: List[FunctionInput] = []
	for line_no, line in enumerate(text.splitlines(), start=1):
		if not line.strip():
			continue
		try:
			inputs.append(FunctionInput.from_dict(json.loads(line), base_dir=base_dir))
		except (json.JSONDecodeError, FactFormatError) as err:
			log.warning("skipping %s:%d: %s", path, line_no, err)
	return inputs


__all__ = ["FunctionInput", "load_function_inputs"]
