"""Hook call scanning for hot-reload signatures."""

from __future__ import annotations

import ast
import re
from typing_extensions import override

HOOK_NAME = re.compile(r"^use[A-Z_]")


def hook_name(func: ast.expr) -> str | None:
	"""Callee text of a hook call (`useState`, `React.useState`), else None."""
	if isinstance(func, ast.Name):
		final = func.id
	elif isinstance(func, ast.Attribute):
		final = func.attr
	else:
		return None
	if not HOOK_NAME.match(final):
		return None
	return ast.unparse(func)


class _HookCollector(ast.NodeVisitor):
	def __init__(self) -> None:
		self.hooks: list[str] = []

	@override
	def visit_Call(self, node: ast.Call) -> None:
		# Arguments and callee run first: useA(useB()) calls useB before useA
		self.generic_visit(node)
		name = hook_name(node.func)
		if name is not None:
			self.hooks.append(name)

	@override
	def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
		return

	@override
	def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
		return

	@override
	def visit_Lambda(self, node: ast.Lambda) -> None:
		return

	@override
	def visit_ClassDef(self, node: ast.ClassDef) -> None:
		return


def find_hooks(body: list[ast.stmt]) -> list[str]:
	"""Hook calls in a component body, in evaluation order, duplicates kept.

	Nested functions, lambdas and classes are not part of the render and are
	skipped.
	"""
	collector = _HookCollector()
	for stmt in body:
		collector.visit(stmt)
	return collector.hooks
