# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Read-only traversal over a `Function` record.

Visitors override only the hooks they care about; `mir_visit` fixes the
order: the function itself, all declarations, then every block's statements
followed by its terminator.
"""

from __future__ import annotations

from .models import Declaration, Function, Statement, Terminator


class MirVisitor:
	"""Base class with no-op hooks."""

	def visit_func(self, func: Function) -> None:
		pass

	def visit_decl(self, decl: Declaration) -> None:
		pass

	def visit_stmt(self, stmt: Statement) -> None:
		pass

	def visit_term(self, term: Terminator) -> None:
		pass


def mir_visit(func: Function, visitor: MirVisitor) -> None:
	visitor.visit_func(func)
	for decl in func.decls:
		visitor.visit_decl(decl)
	for bb in func.basic_blocks:
		for stmt in bb.statements:
			visitor.visit_stmt(stmt)
		if bb.terminator is not None:
			visitor.visit_term(bb.terminator)


__all__ = ["MirVisitor", "mir_visit"]
