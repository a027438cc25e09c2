# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Payload shapes of the cursor query.

Framing (JSON-RPC over stdio) belongs to the editor transport; these are just
the request/response bodies and the analysis status they carry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional
from urllib.parse import unquote, urlparse

from ownlens.core.errors import FactFormatError


class AnalysisStatus(Enum):
	ANALYZING = "analyzing"
	FINISHED = "finished"
	ERROR = "error"


@dataclass(frozen=True)
class Position:
	line: int
	character: int

	def to_dict(self) -> dict[str, int]:
		return {"line": self.line, "character": self.character}


def uri_to_path(uri: str) -> Optional[Path]:
	"""Local path of a `file://` URI; None for other schemes."""
	parsed = urlparse(uri)
	if parsed.scheme not in ("file", ""):
		return None
	return Path(unquote(parsed.path))


@dataclass(frozen=True)
class CursorRequest:
	position: Position
	uri: str

	def path(self) -> Optional[Path]:
		return uri_to_path(self.uri)

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "CursorRequest":
		try:
			pos = data["position"]
			return cls(Position(int(pos["line"]), int(pos["character"])), str(data["document"]["uri"]))
		except (KeyError, TypeError, ValueError) as err:
			raise FactFormatError(f"invalid cursor request: {data!r}") from err


@dataclass
class Decorations:
	is_analyzed: bool
	status: AnalysisStatus
	path: Optional[Path] = None
	decorations: List[dict[str, Any]] = field(default_factory=list)

	def to_dict(self) -> dict[str, Any]:
		return {
			"is_analyzed": self.is_analyzed,
			"status": self.status.value,
			"path": str(self.path) if self.path is not None else None,
			"decorations": list(self.decorations),
		}


__all__ = ["AnalysisStatus", "Position", "CursorRequest", "Decorations", "uri_to_path"]
