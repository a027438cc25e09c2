# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OwnlensError(Exception):
	"""
	A structured, serializable error for ownlens tooling.

	`reason_code` is stable across releases so editors and scripts can match
	on it; `message` is for humans.
	"""

	reason_code: str
	message: str
	path: str | None = None
	fn_id: int | None = None
	line_no: int | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"path": self.path,
			"fn_id": self.fn_id,
			"line_no": self.line_no,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.path:
			parts.append(f"path={self.path}")
		if self.fn_id is not None:
			parts.append(f"fn_id={self.fn_id}")
		if self.line_no is not None:
			parts.append(f"line={self.line_no}")
		return " ".join(parts)


class FactFormatError(OwnlensError):
	"""Input document (function body, relation table, workspace JSON) is malformed."""

	def __init__(self, message: str, *, path: str | None = None, fn_id: int | None = None, line_no: int | None = None) -> None:
		super().__init__("fact-format", message, path, fn_id, line_no)


__all__ = ["OwnlensError", "FactFormatError"]
