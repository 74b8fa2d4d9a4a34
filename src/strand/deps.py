"""Resolution of the globals a component body references."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator
from types import CodeType
from typing import Any

from strand.nodes import EXPR_REGISTRY, ExprNode


def referenced_names(code: CodeType) -> set[str]:
	"""Global, attribute and free variable names used by `code`, including
	the code of nested functions, lambdas and comprehensions."""
	names: set[str] = set()
	pending = [code]
	while pending:
		current = pending.pop()
		names.update(current.co_names, current.co_freevars)
		pending.extend(c for c in current.co_consts if isinstance(c, CodeType))
	return names


def _bound_cells(fn: Callable[..., object]) -> Iterator[tuple[str, Any]]:
	"""(name, value) for each closure cell of `fn` that holds a value."""
	for name, cell in zip(fn.__code__.co_freevars, fn.__closure__ or (), strict=False):
		try:
			yield name, cell.cell_contents
		except ValueError:
			# Assigned later in the enclosing function
			continue


def _unresolved_reason(value: Any) -> str | None:
	if inspect.ismodule(value):
		return f"module '{value.__name__}' is not registered (see PyModule.register)"
	if isinstance(value, type):
		return f"class '{value.__name__}' cannot be used at runtime"
	if inspect.isfunction(value):
		return (
			f"function '{value.__qualname__}' is plain Python; "
			+ "decorate it with @component or register it"
		)
	if callable(value):
		return f"callable of type {type(value).__name__} is not supported"
	return None


def analyze_deps(
	fn: Callable[..., object],
) -> tuple[dict[str, ExprNode], dict[str, str]]:
	"""Resolve the names referenced by `fn` to ExprNodes.

	Closure variables shadow module globals. Returns (deps, unresolved).
	`unresolved` maps names that could not be converted to the reason; the
	transpiler only reports them if the body actually reads them (co_names
	also lists attribute names).
	"""
	scope: dict[str, Any] = {**fn.__globals__, **dict(_bound_cells(fn))}

	deps: dict[str, ExprNode] = {}
	unresolved: dict[str, str] = {}
	for name in sorted(referenced_names(fn.__code__) & scope.keys()):
		value = scope[name]
		if isinstance(value, ExprNode):
			deps[name] = value
		elif id(value) in EXPR_REGISTRY:
			deps[name] = EXPR_REGISTRY[id(value)]
		elif (reason := _unresolved_reason(value)) is not None:
			unresolved[name] = reason
		else:
			try:
				deps[name] = ExprNode.of(value)
			except TypeError:
				unresolved[name] = f"value of type {type(value).__name__} cannot be converted"
	return deps, unresolved
