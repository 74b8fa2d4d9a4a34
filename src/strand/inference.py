"""Static shape inference and element-argument classification.

Shapes are small string tags. An inferred shape set lists every shape an
expression may evaluate to. The empty set means "unknown", and any operation
that touches an unknown operand stays unknown.
"""

from __future__ import annotations

import ast
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeAlias

from strand.builtins import BUILTINS
from strand.nodes import (
	Array,
	ExprNode,
	Identifier,
	Literal,
	New,
	Object,
	Template,
	Transformer,
)

if TYPE_CHECKING:
	from strand.transpiler import Transpiler

Shapes: TypeAlias = frozenset[str]

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
SEQ = "seq"
ELEMENT = "element"
# Python dict, compiled to a JS Map
MAP = "map"
# Plain JS object, e.g. the props a component receives
OBJECT = "object"
SET = "set"
FUNCTION = "function"

UNKNOWN: Shapes = frozenset()

# Values React renders as children without ever being mistaken for props
PRIMITIVE_SHAPES: Shapes = frozenset({STRING, NUMBER, NULL, SEQ, ELEMENT})
MAPPING_SHAPES: Shapes = frozenset({MAP, OBJECT})
SCALAR_SHAPES: Shapes = frozenset({STRING, NUMBER, BOOLEAN, NULL})


def shapes(*tags: str) -> Shapes:
	return frozenset(tags)


def union(*parts: Shapes) -> Shapes:
	"""Union of shape sets. Unknown if any part is unknown."""
	if not parts or any(not p for p in parts):
		return UNKNOWN
	return frozenset().union(*parts)


class ElementSource(ExprNode, ABC):
	"""Marker for macros whose calls always produce a React element."""

	__slots__: tuple[str, ...] = ()


# =============================================================================
# Expression inference
# =============================================================================

_BUILTIN_RESULTS: dict[str, Shapes] = {
	"str": shapes(STRING),
	"chr": shapes(STRING),
	"len": shapes(NUMBER),
	"int": shapes(NUMBER),
	"float": shapes(NUMBER),
	"round": shapes(NUMBER),
	"abs": shapes(NUMBER),
	"sum": shapes(NUMBER),
	"ord": shapes(NUMBER),
	"bool": shapes(BOOLEAN),
	"any": shapes(BOOLEAN),
	"all": shapes(BOOLEAN),
	"list": shapes(SEQ),
	"tuple": shapes(SEQ),
	"sorted": shapes(SEQ),
	"reversed": shapes(SEQ),
	"range": shapes(SEQ),
	"enumerate": shapes(SEQ),
	"zip": shapes(SEQ),
	"map": shapes(SEQ),
	"filter": shapes(SEQ),
	"dict": shapes(MAP),
	"set": shapes(SET),
}

_STR_METHOD_RESULTS: dict[str, Shapes] = {
	**dict.fromkeys(
		[
			"lower",
			"upper",
			"strip",
			"lstrip",
			"rstrip",
			"replace",
			"capitalize",
			"title",
			"zfill",
			"join",
			"casefold",
			"center",
			"ljust",
			"rjust",
			"format",
		],
		shapes(STRING),
	),
	**dict.fromkeys(
		["startswith", "endswith", "isdigit", "isalpha", "isalnum", "isspace"],
		shapes(BOOLEAN),
	),
	**dict.fromkeys(["find", "rfind", "index", "count"], shapes(NUMBER)),
	**dict.fromkeys(["split", "rsplit", "splitlines"], shapes(SEQ)),
}

_MAP_METHOD_RESULTS: dict[str, Shapes] = dict.fromkeys(
	["keys", "values", "items"], shapes(SEQ)
)


def constant_shapes(value: object) -> Shapes:
	if value is None:
		return shapes(NULL)
	if isinstance(value, bool):
		return shapes(BOOLEAN)
	if isinstance(value, (int, float)):
		return shapes(NUMBER)
	if isinstance(value, str):
		return shapes(STRING)
	return UNKNOWN


def node_shapes(expr: ExprNode) -> Shapes:
	"""Shapes of an already-converted module-level value."""
	if isinstance(expr, Literal):
		return constant_shapes(expr.value)
	if isinstance(expr, Template):
		return shapes(STRING)
	if isinstance(expr, Array):
		return shapes(SEQ)
	if isinstance(expr, Object):
		return shapes(OBJECT)
	if isinstance(expr, New) and isinstance(expr.ctor, Identifier):
		if expr.ctor.name == "Map":
			return shapes(MAP)
		if expr.ctor.name == "Set":
			return shapes(SET)
	return UNKNOWN


def is_repeat(left: Shapes, right: Shapes) -> bool:
	"""`str * int` in either order, which compiles to `.repeat()`."""
	return {left, right} == {shapes(STRING), shapes(NUMBER)}


def binop_shapes(op: ast.operator, left: Shapes, right: Shapes) -> Shapes:
	if not left or not right:
		return UNKNOWN
	both = left | right
	numeric = both <= {NUMBER}
	if isinstance(op, ast.Add):
		if numeric:
			return shapes(NUMBER)
		# JS string concatenation coerces numbers
		if both <= {STRING, NUMBER} and (left == {STRING} or right == {STRING}):
			return shapes(STRING)
		return UNKNOWN
	if isinstance(op, ast.Mult):
		if numeric:
			return shapes(NUMBER)
		if is_repeat(left, right):
			return shapes(STRING)
		return UNKNOWN
	if isinstance(op, (ast.Sub, ast.Div, ast.FloorDiv, ast.Mod, ast.Pow)) and numeric:
		return shapes(NUMBER)
	return UNKNOWN


def _call_shapes(node: ast.Call, ctx: Transpiler) -> Shapes:
	callee = ctx.resolve(node.func)
	if isinstance(callee, ElementSource):
		return shapes(ELEMENT)
	if isinstance(callee, Transformer) and BUILTINS.get(callee.name) is callee:
		return _BUILTIN_RESULTS.get(callee.name, UNKNOWN)

	if isinstance(node.func, ast.Attribute) and callee is None:
		receiver = infer(node.func.value, ctx)
		method = node.func.attr
		if receiver == {STRING}:
			return _STR_METHOD_RESULTS.get(method, UNKNOWN)
		if receiver == {MAP}:
			return _MAP_METHOD_RESULTS.get(method, UNKNOWN)
	return UNKNOWN


def infer(node: ast.expr | None, ctx: Transpiler) -> Shapes:
	"""Infer the shapes `node` may evaluate to. Empty when unknown."""
	if node is None:
		return UNKNOWN

	if isinstance(node, ast.Constant):
		return constant_shapes(node.value)

	if isinstance(node, ast.JoinedStr):
		return shapes(STRING)

	if isinstance(node, ast.Name):
		if node.id in ctx.locals:
			return ctx.types.get(node.id, UNKNOWN)
		dep = ctx.deps.get(node.id)
		return UNKNOWN if dep is None else node_shapes(dep)

	if isinstance(node, (ast.List, ast.Tuple, ast.ListComp, ast.GeneratorExp)):
		return shapes(SEQ)

	if isinstance(node, (ast.Dict, ast.DictComp)):
		return shapes(MAP)

	if isinstance(node, (ast.Set, ast.SetComp)):
		return shapes(SET)

	if isinstance(node, ast.Lambda):
		return shapes(FUNCTION)

	if isinstance(node, ast.Compare):
		return shapes(BOOLEAN)

	if isinstance(node, ast.UnaryOp):
		if isinstance(node.op, ast.Not):
			return shapes(BOOLEAN)
		operand = infer(node.operand, ctx)
		return shapes(NUMBER) if operand and operand <= {NUMBER, BOOLEAN} else UNKNOWN

	if isinstance(node, ast.BinOp):
		return binop_shapes(node.op, infer(node.left, ctx), infer(node.right, ctx))

	if isinstance(node, ast.BoolOp):
		# `a or b` evaluates to one of its operands
		return union(*(infer(v, ctx) for v in node.values))

	if isinstance(node, ast.IfExp):
		return union(infer(node.body, ctx), infer(node.orelse, ctx))

	if isinstance(node, ast.NamedExpr):
		return infer(node.value, ctx)

	if isinstance(node, ast.Call):
		return _call_shapes(node, ctx)

	return UNKNOWN


# =============================================================================
# Annotations
# =============================================================================

_ANNOTATION_NAMES: dict[str, Shapes] = {
	"str": shapes(STRING),
	"int": shapes(NUMBER),
	"float": shapes(NUMBER),
	"bool": shapes(BOOLEAN),
	"None": shapes(NULL),
	"NoneType": shapes(NULL),
	"Element": shapes(ELEMENT),
	**dict.fromkeys(["dict", "Dict", "Mapping", "MutableMapping"], shapes(MAP)),
	**dict.fromkeys(
		[
			"list",
			"List",
			"tuple",
			"Tuple",
			"Sequence",
			"MutableSequence",
			"Iterable",
			"Iterator",
			"Collection",
		],
		shapes(SEQ),
	),
	**dict.fromkeys(["set", "Set", "frozenset", "FrozenSet", "AbstractSet"], shapes(SET)),
	"Callable": shapes(FUNCTION),
}


def _annotation_name(node: ast.expr) -> str | None:
	if isinstance(node, ast.Name):
		return node.id
	if isinstance(node, ast.Attribute):
		return node.attr
	return None


def annotation_shapes(node: ast.expr | None, ctx: Transpiler | None = None) -> Shapes:
	"""Shapes allowed by a type annotation. Unknown for anything unrecognized.

	Understands builtin types, `Element`, typing collections, `Optional[X]`,
	`Union[...]`, `X | Y`, `Literal[...]`, `Annotated[X, ...]` and string
	(forward reference) annotations.
	"""
	if node is None:
		return UNKNOWN

	if isinstance(node, ast.Constant):
		if node.value is None:
			return shapes(NULL)
		if isinstance(node.value, str):
			try:
				parsed = ast.parse(node.value, mode="eval")
			except SyntaxError:
				return UNKNOWN
			return annotation_shapes(parsed.body, ctx)
		return UNKNOWN

	if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
		return union(annotation_shapes(node.left, ctx), annotation_shapes(node.right, ctx))

	if isinstance(node, ast.Subscript):
		base = _annotation_name(node.value)
		args = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
		if base == "Optional":
			return union(annotation_shapes(args[0], ctx), shapes(NULL))
		if base == "Union":
			return union(*(annotation_shapes(a, ctx) for a in args))
		if base == "Annotated":
			return annotation_shapes(args[0], ctx)
		if base == "Literal":
			return union(
				*(constant_shapes(a.value) if isinstance(a, ast.Constant) else UNKNOWN for a in args)
			)
		return annotation_shapes(node.value, ctx)

	name = _annotation_name(node)
	if name is None:
		return UNKNOWN
	return _ANNOTATION_NAMES.get(name, UNKNOWN)


# =============================================================================
# Element argument classification
# =============================================================================


class Kind(Enum):
	"""How the element macro treats its first argument."""

	NIL_CHILD = "nil-child"
	NATIVE_PROPS_MAP = "native-props-map"
	GENERIC_PROPS_MAP = "generic-props-map"
	PRIMITIVE_CHILD = "primitive-child"
	INFERRED_PRIMITIVE = "inferred-primitive"
	INFERRED_ELEMENT = "inferred-element"
	UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class Classified:
	kind: Kind
	types: Shapes = UNKNOWN
	# Why a literal could not be used as props, when that is the reason
	detail: str | None = None

	@property
	def is_mapping(self) -> bool:
		"""Inference proved a (non-literal) mapping."""
		return bool(self.types) and self.types <= MAPPING_SHAPES

	def describe_types(self) -> str:
		if self.detail is not None:
			return self.detail
		if not self.types:
			return "unknown"
		return " | ".join(sorted(self.types))


def count_spreads(node: ast.Dict) -> int:
	return sum(1 for k in node.keys if k is None)


def classify(arg: ast.expr | None, ctx: Transpiler, native: bool) -> Classified:
	"""Classify the first argument of an element request. Never raises."""
	if arg is None or (isinstance(arg, ast.Constant) and arg.value is None):
		return Classified(Kind.NIL_CHILD, shapes(NULL))

	if isinstance(arg, ast.Dict):
		if count_spreads(arg) <= 1:
			kind = Kind.NATIVE_PROPS_MAP if native else Kind.GENERIC_PROPS_MAP
			return Classified(kind, shapes(MAP))
		return Classified(
			Kind.UNKNOWN, detail="a dict literal with more than one ** spread"
		)

	if isinstance(arg, ast.Constant) and isinstance(arg.value, (str, int, float, bool)):
		return Classified(Kind.PRIMITIVE_CHILD, constant_shapes(arg.value))

	if isinstance(arg, ast.Starred):
		return Classified(Kind.UNKNOWN)

	if isinstance(arg, ast.Call) and isinstance(ctx.resolve(arg.func), ElementSource):
		return Classified(Kind.INFERRED_ELEMENT, shapes(ELEMENT))

	types = infer(arg, ctx)
	if types and types <= PRIMITIVE_SHAPES:
		return Classified(Kind.INFERRED_PRIMITIVE, types)
	return Classified(Kind.UNKNOWN, types)
