"""Compile-time conversion of dict literals into JS props objects."""

from __future__ import annotations

import ast
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, TypeAlias

from strand.inference import SCALAR_SHAPES
from strand.keys import camel_case
from strand.nodes import Call, ExprNode, Literal, Object, emit

if TYPE_CHECKING:
	from strand.transpiler import Transpiler

PropKey: TypeAlias = str | ExprNode
PropEntry: TypeAlias = tuple[PropKey, ExprNode]
KvToProp: TypeAlias = Callable[[ast.expr, ast.expr, "Transpiler"], list[PropEntry]]

# Native prop names that differ from their HTML attribute names
NATIVE_RENAMES: dict[str, str] = {
	"class": "className",
	"for": "htmlFor",
}


def prop_name(key: ast.expr, ctx: Transpiler) -> PropKey:
	"""String keys verbatim, other constants in their JS string form,
	anything else as a computed key."""
	if isinstance(key, ast.Constant):
		if isinstance(key.value, str):
			return key.value
		return emit(Literal(key.value))
	return ctx.emit_expr(key)


def build_object(
	entries: Sequence[tuple[ast.expr, ast.expr]],
	kv_to_prop: KvToProp,
	ctx: Transpiler,
) -> Object:
	"""Fold (key, value) entries, in order, into one JS object literal.

	kv_to_prop may expand an entry into zero or more properties.
	"""
	props: list[PropEntry] = []
	for key, value in entries:
		props.extend(kv_to_prop(key, value, ctx))
	return Object(props)


def default_kv_to_prop(key: ast.expr, value: ast.expr, ctx: Transpiler) -> list[PropEntry]:
	return [(prop_name(key, ctx), ctx.emit_expr(value))]


def style_object(node: ast.Dict, ctx: Transpiler) -> Object:
	"""Style dict literal -> JS object with camel-cased keys, recursively."""

	def kv(key: ast.expr, value: ast.expr, ctx: Transpiler) -> list[PropEntry]:
		name = camel_case(prop_name(key, ctx))
		if isinstance(value, ast.Dict) and not has_spread(value):
			return [(name, style_object(value, ctx))]
		inferred = ctx.shape_of(value)
		if inferred and inferred <= SCALAR_SHAPES:
			return [(name, ctx.emit_expr(value))]
		# Maybe a Map: convert to a plain object at runtime
		return [(name, to_js(value, ctx))]

	return build_object(literal_entries(node), kv, ctx)


def native_kv_to_prop(key: ast.expr, value: ast.expr, ctx: Transpiler) -> list[PropEntry]:
	name = prop_name(key, ctx)
	if isinstance(name, str) and name in NATIVE_RENAMES:
		return [(NATIVE_RENAMES[name], ctx.emit_expr(value))]
	if name == "style":
		if isinstance(value, ast.Dict) and not has_spread(value):
			return [("style", style_object(value, ctx))]
		# Opaque value: deep-convert at runtime
		return [("style", to_js(value, ctx))]
	return [(camel_case(name), ctx.emit_expr(value))]


def to_js(value: ast.expr, ctx: Transpiler) -> ExprNode:
	return Call(ctx.build.use(ctx.build.runtime.toJs), [ctx.emit_expr(value)])


def has_spread(node: ast.Dict) -> bool:
	return any(k is None for k in node.keys)


def literal_entries(node: ast.Dict) -> list[tuple[ast.expr, ast.expr]]:
	"""Entries of a dict literal, without `**spread` entries."""
	return [(k, v) for k, v in zip(node.keys, node.values, strict=True) if k is not None]


def spread_value(node: ast.Dict) -> ast.expr | None:
	for k, v in zip(node.keys, node.values, strict=True):
		if k is None:
			return v
	return None


def build_props(node: ast.Dict, ctx: Transpiler, native: bool) -> ExprNode:
	"""Props dict literal (at most one `**spread`) -> JS props expression.

	With a spread the static entries become an object merged under the
	spread at runtime: mergeProps({...static}, spread). The spread always
	wins over static entries, wherever it appears in the literal.
	"""
	kv_to_prop = native_kv_to_prop if native else default_kv_to_prop
	obj = build_object(literal_entries(node), kv_to_prop, ctx)
	spread = spread_value(node)
	if spread is None:
		return obj
	merge = ctx.build.use(ctx.build.runtime.mergeProps)
	return Call(merge, [obj, ctx.emit_expr(spread)])
