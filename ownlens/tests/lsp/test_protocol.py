#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Cursor request/response payloads."""

from pathlib import Path

from ownlens.lsp.protocol import AnalysisStatus, CursorRequest, Decorations, Position, uri_to_path


def test_uri_to_path():
	assert uri_to_path("file:///home/me/src/main.rs") == Path("/home/me/src/main.rs")
	assert uri_to_path("file:///tmp/with%20space.rs") == Path("/tmp/with space.rs")
	assert uri_to_path("untitled:Untitled-1") is None


def test_cursor_request_from_dict():
	req = CursorRequest.from_dict({"position": {"line": 3, "character": 7}, "document": {"uri": "file:///a.rs"}})
	assert req.position == Position(3, 7)
	assert req.path() == Path("/a.rs")


def test_decorations_payload():
	empty = Decorations(False, AnalysisStatus.ERROR)
	assert empty.to_dict() == {"is_analyzed": False, "status": "error", "path": None, "decorations": []}
	full = Decorations(True, AnalysisStatus.ANALYZING, Path("/a.rs"), [{"type": "move"}])
	assert full.to_dict()["path"] == "/a.rs"
	assert full.to_dict()["status"] == "analyzing"
