"""Element construction macros: h(), fragment() and DOM tags.

Every element request is classified at build time. When the props shape is
provable the macro emits a direct createElement call; otherwise it emits the
runtime dynamicElement fallback and reports a missed optimization.
"""

from __future__ import annotations

import ast
import logging
from typing import TYPE_CHECKING, Any
from typing_extensions import override

from strand.context import Diagnostic
from strand.errors import TranspileError
from strand.inference import ElementSource, Kind, classify
from strand.nodes import Call, ExprNode, Literal
from strand.props import build_props

if TYPE_CHECKING:
	from strand.transpiler import Transpiler

logger = logging.getLogger(__name__)

PREVIEW_ARGS = 2
PREVIEW_WIDTH = 80


class Element:
	"""Annotation marker for values that are React elements.

	    def Item(*, label: str, icon: Element): ...
	"""


def preview(label: str, args: list[ast.expr]) -> str:
	"""Short source preview of an element request: h("div", props, ...)"""
	shown = [ast.unparse(a) for a in args[:PREVIEW_ARGS]]
	if len(args) > PREVIEW_ARGS:
		shown.append("...")
	text = f"{label}({', '.join(shown)})"
	if len(text) > PREVIEW_WIDTH:
		text = text[: PREVIEW_WIDTH - 4] + "...)"
	return text


def build_element(
	type_expr: ExprNode,
	args: list[ast.expr],
	ctx: Transpiler,
	native: bool,
	label: str,
	preview_args: list[ast.expr] | None = None,
) -> ExprNode:
	"""Emit an element request for `type_expr` given its raw arguments.

	`args` are the props-or-child argument followed by the children. The first
	one is classified once and decides the output form.
	"""
	rt = ctx.build.runtime
	first = args[0] if args else None
	rest = args[1:]
	classified = classify(first, ctx, native)

	if classified.kind is Kind.UNKNOWN:
		if ctx.build.options.warn_dynamic_props and not classified.is_mapping:
			report_dynamic(
				ctx, first, classified.describe_types(), preview(label, preview_args or args)
			)
		dynamic = ctx.build.use(rt.dynamicElement)
		return Call(dynamic, [type_expr, *(ctx.emit_expr(a) for a in args)])

	create = ctx.build.use(rt.createElement)
	if classified.kind in (Kind.NATIVE_PROPS_MAP, Kind.GENERIC_PROPS_MAP):
		assert isinstance(first, ast.Dict)
		props = build_props(first, ctx, native=classified.kind is Kind.NATIVE_PROPS_MAP)
		children = rest
	elif classified.kind is Kind.NIL_CHILD:
		props = Literal(None)
		children = rest
	else:
		props = Literal(None)
		children = args
	return Call(create, [type_expr, props, *(ctx.emit_expr(a) for a in children)])


def report_dynamic(
	ctx: Transpiler, arg: ast.expr | None, types: str, source: str
) -> None:
	src = "<none>" if arg is None else ast.unparse(arg)
	lineno = getattr(arg, "lineno", None)
	message = (
		f"Unable to determine props statically: inferred type of arg {src} was {types}"
	)
	diagnostic = Diagnostic(ctx.module, lineno, message, source)
	logger.warning("%s", diagnostic.format())
	ctx.build.report(diagnostic)


class ElementMacro(ElementSource):
	"""`h(type, props_or_child=None, *children)`

	A string type is a native tag. Anything else is a component reference.
	"""

	__slots__ = ()

	@override
	def emit(self, out: list[str]) -> None:
		raise TranspileError("h() can only be called, not used as a value")

	@override
	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		if kwargs:
			raise TranspileError(
				f"h() does not accept keyword arguments (got {', '.join(kwargs)}); "
				+ "pass props as a dict literal"
			)
		if not args:
			raise TranspileError("h() requires an element type")
		type_node = args[0]
		native = isinstance(type_node, ast.Constant) and isinstance(type_node.value, str)
		return build_element(ctx.emit_expr(type_node), args[1:], ctx, native, "h", args)


class FragmentMacro(ElementSource):
	"""`fragment(*children)` -> createElement(Fragment, null, ...children)"""

	__slots__ = ()

	@override
	def emit(self, out: list[str]) -> None:
		raise TranspileError("fragment() can only be called, not used as a value")

	@override
	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		if kwargs:
			raise TranspileError("fragment() does not accept keyword arguments")
		rt = ctx.build.runtime
		create = ctx.build.use(rt.createElement)
		fragment_type = ctx.build.use(rt.Fragment)
		return Call(create, [fragment_type, Literal(None), *(ctx.emit_expr(a) for a in args)])


class TagMacro(ElementSource):
	"""A native tag shorthand: `div(props_or_child, *children)`."""

	__slots__ = ("tag",)

	tag: str

	def __init__(self, tag: str) -> None:
		self.tag = tag

	@override
	def emit(self, out: list[str]) -> None:
		raise TranspileError(f"{self.tag}() can only be called, not used as a value")

	@override
	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		if kwargs:
			raise TranspileError(
				f"{self.tag}() does not accept keyword arguments; pass props as a dict literal"
			)
		return build_element(Literal(self.tag), args, ctx, True, self.tag)

	@override
	def __repr__(self) -> str:
		return f"TagMacro({self.tag!r})"


h = ElementMacro()
fragment = FragmentMacro()
