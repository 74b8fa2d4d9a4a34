"""Whole Python modules that resolve inside component bodies.

A registered module can be imported as a whole (`from strand import dom`,
then `dom.div(...)`) or attribute by attribute (`from strand.dom import div`).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import ModuleType
from typing import TYPE_CHECKING, Any
from typing_extensions import override

from strand.errors import TranspileError
from strand.nodes import ExprNode, Primitive, Transformer

if TYPE_CHECKING:
	from strand.transpiler import Transpiler


class PyModule(ExprNode):
	"""ExprNode standing for a Python module object."""

	__slots__ = ("members", "name")

	members: dict[str, ExprNode]
	name: str

	def __init__(self, members: dict[str, ExprNode] | None = None, name: str = ""):
		self.members = members if members is not None else {}
		self.name = name

	@override
	def emit(self, out: list[str]) -> None:
		raise TranspileError(f"Module '{self.name}' cannot be used as a value")

	@override
	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		raise TranspileError(f"Module '{self.name}' is not callable")

	@override
	def emit_getattr(self, attr: str, ctx: Transpiler) -> ExprNode:
		member = self.members.get(attr)
		if member is None:
			raise TranspileError(f"Module '{self.name}' has no attribute '{attr}'")
		return member

	@override
	def emit_subscript(self, key: Any, ctx: Transpiler) -> ExprNode:
		raise TranspileError(f"Module '{self.name}' cannot be subscripted")

	@staticmethod
	def register(  # pyright: ignore[reportIncompatibleMethodOverride, reportImplicitOverride]
		module: ModuleType,
		members: Mapping[str, ExprNode | Primitive | Callable[..., ExprNode]],
	) -> PyModule:
		"""Register `module` and each of its listed attributes.

		Values may be ExprNodes, primitives (inlined as literals) or plain
		callables, which are wrapped in a Transformer.
		"""
		resolved: dict[str, ExprNode] = {}
		for attr, value in members.items():
			if isinstance(value, ExprNode):
				resolved[attr] = value
			elif callable(value):
				resolved[attr] = Transformer(value, name=attr)
			else:
				resolved[attr] = ExprNode.of(value)

		for attr, expr in resolved.items():
			# Attributes that are themselves ExprNodes resolve without the registry
			value = getattr(module, attr, None)
			if value is not None and not isinstance(value, ExprNode):
				ExprNode.register(value, expr)

		node = PyModule(resolved, name=module.__name__)
		ExprNode.register(module, node)
		return node
