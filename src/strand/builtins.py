"""Python builtins and builtin methods -> JavaScript equivalents.

Builtin methods are dispatched on the receiver's statically inferred shape
when it is known, and through a chain of runtime type checks otherwise.
"""

from __future__ import annotations

import ast
import builtins
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any
from typing_extensions import override

from strand.errors import TranspileError
from strand.nodes import (
	Array,
	Arrow,
	Binary,
	Call,
	ExprNode,
	Identifier,
	Literal,
	Member,
	New,
	Object,
	Spread,
	Subscript,
	Template,
	Ternary,
	Transformer,
	Unary,
	Undefined,
)

if TYPE_CHECKING:
	from strand.transpiler import Transpiler


BUILTINS: builtins.dict[builtins.str, Transformer] = {}


def builtin(name: str) -> Callable[[Callable[..., ExprNode]], Transformer]:
	"""Register a transformer for the Python builtin `name`."""

	def decorator(fn: Callable[..., ExprNode]) -> Transformer:
		t = Transformer(fn, name=name)
		BUILTINS[name] = t
		return t

	return decorator


def _math(fn: str, *args: ExprNode) -> ExprNode:
	return Call(Member(Identifier("Math"), fn), builtins.list(args))


def _array_from(*args: ExprNode) -> ExprNode:
	return Call(Member(Identifier("Array"), "from"), builtins.list(args))


def _arity(name: str, args: tuple[Any, ...], lo: int, hi: int) -> None:
	if not (lo <= builtins.len(args) <= hi):
		expected = f"{lo}" if lo == hi else f"{lo} to {hi}"
		raise TranspileError(f"{name}() expects {expected} argument(s)")


# =============================================================================
# Builtin functions
# =============================================================================


@builtin("print")
def emit_print(*args: Any, ctx: Transpiler) -> ExprNode:
	return Call(Member(Identifier("console"), "log"), [ctx.emit_expr(a) for a in args])


@builtin("len")
def emit_len(x: Any, *, ctx: Transpiler) -> ExprNode:
	"""len(x) -> x.length ?? x.size"""
	js = ctx.emit_expr(x)
	return Binary(Member(js, "length"), "??", Member(js, "size"))


@builtin("min")
def emit_min(*args: Any, ctx: Transpiler) -> ExprNode:
	return _math("min", *(ctx.emit_expr(a) for a in args))


@builtin("max")
def emit_max(*args: Any, ctx: Transpiler) -> ExprNode:
	return _math("max", *(ctx.emit_expr(a) for a in args))


@builtin("abs")
def emit_abs(x: Any, *, ctx: Transpiler) -> ExprNode:
	return _math("abs", ctx.emit_expr(x))


@builtin("round")
def emit_round(number: Any, ndigits: Any = None, *, ctx: Transpiler) -> ExprNode:
	"""round(x) -> Math.round(x); round(x, n) -> Number(Number(x).toFixed(n))"""
	js = ctx.emit_expr(number)
	if ndigits is None:
		return _math("round", js)
	fixed = Call(
		Member(Call(Identifier("Number"), [js]), "toFixed"), [ctx.emit_expr(ndigits)]
	)
	return Call(Identifier("Number"), [fixed])


@builtin("str")
def emit_str(*args: Any, ctx: Transpiler) -> ExprNode:
	_arity("str", args, 0, 1)
	if not args:
		return Literal("")
	return Call(Identifier("String"), [ctx.emit_expr(args[0])])


@builtin("int")
def emit_int(*args: Any, ctx: Transpiler) -> ExprNode:
	"""int(x[, base]) -> parseInt(x[, base])"""
	_arity("int", args, 1, 2)
	return Call(Identifier("parseInt"), [ctx.emit_expr(a) for a in args])


@builtin("float")
def emit_float(x: Any, *, ctx: Transpiler) -> ExprNode:
	return Call(Identifier("parseFloat"), [ctx.emit_expr(x)])


@builtin("bool")
def emit_bool(x: Any, *, ctx: Transpiler) -> ExprNode:
	return Call(Identifier("Boolean"), [ctx.emit_expr(x)])


@builtin("list")
def emit_list(*args: Any, ctx: Transpiler) -> ExprNode:
	"""list() -> []; list(x) -> Array.from(x)"""
	_arity("list", args, 0, 1)
	if not args:
		return Array([])
	return _array_from(ctx.emit_expr(args[0]))


@builtin("tuple")
def emit_tuple(*args: Any, ctx: Transpiler) -> ExprNode:
	_arity("tuple", args, 0, 1)
	if not args:
		return Array([])
	return _array_from(ctx.emit_expr(args[0]))


@builtin("set")
def emit_set(*args: Any, ctx: Transpiler) -> ExprNode:
	_arity("set", args, 0, 1)
	return New(Identifier("Set"), [ctx.emit_expr(a) for a in args])


@builtin("dict")
def emit_dict(*args: Any, ctx: Transpiler) -> ExprNode:
	_arity("dict", args, 0, 1)
	return New(Identifier("Map"), [ctx.emit_expr(a) for a in args])


@builtin("filter")
def emit_filter(*args: Any, ctx: Transpiler) -> ExprNode:
	"""filter(fn, xs) -> xs.filter(fn); filter(None, xs) keeps truthy values"""
	_arity("filter", args, 2, 2)
	fn, xs = args
	if isinstance(fn, ast.Constant) and fn.value is None:
		pred: ExprNode = Arrow(["v"], Identifier("v"))
	else:
		pred = ctx.emit_expr(fn)
	return Call(Member(ctx.emit_expr(xs), "filter"), [pred])


@builtin("map")
def emit_map(fn: Any, xs: Any, *, ctx: Transpiler) -> ExprNode:
	"""map(fn, xs) -> xs.map(v => fn(v))"""
	f = ctx.emit_expr(fn)
	if isinstance(f, Transformer):
		raise TranspileError(f"map() over the builtin {f.name}() is not supported, use a lambda")
	# Array.prototype.map passes (value, index, array); only forward the value
	if not isinstance(f, Arrow):
		f = Arrow(["v"], Call(f, [Identifier("v")]))
	return Call(Member(ctx.emit_expr(xs), "map"), [f])


@builtin("reversed")
def emit_reversed(xs: Any, *, ctx: Transpiler) -> ExprNode:
	"""reversed(xs) -> [...xs].reverse()"""
	return Call(Member(Array([Spread(ctx.emit_expr(xs))]), "reverse"), [])


@builtin("enumerate")
def emit_enumerate(xs: Any, start: Any = None, *, ctx: Transpiler) -> ExprNode:
	"""enumerate(xs, start) -> Array.from(xs, (v, i) => [i + start, v])"""
	idx: ExprNode = Identifier("i")
	if start is not None:
		idx = Binary(idx, "+", ctx.emit_expr(start))
	return _array_from(
		ctx.emit_expr(xs), Arrow(["v", "i"], Array([idx, Identifier("v")]))
	)


@builtin("range")
def emit_range(*args: Any, ctx: Transpiler) -> ExprNode:
	"""range(...) -> Array.from({length: n}, (_, i) => start + i * step)"""
	_arity("range", args, 1, 3)
	js = [ctx.emit_expr(a) for a in args]
	if builtins.len(js) == 1:
		length = _math("max", Literal(0), js[0])
		return _array_from(Call(Member(New(Identifier("Array"), [length]), "keys"), []))
	start, stop = js[0], js[1]
	step = js[2] if builtins.len(js) == 3 else Literal(1)
	span = Binary(Binary(stop, "-", start), "/", step)
	count = _math("max", Literal(0), _math("ceil", span))
	return _array_from(
		Call(Member(New(Identifier("Array"), [count]), "keys"), []),
		Arrow(["i"], Binary(start, "+", Binary(Identifier("i"), "*", step))),
	)


def _compare(key: ExprNode | None) -> Arrow:
	a: ExprNode = Identifier("a")
	b: ExprNode = Identifier("b")
	if key is not None:
		a, b = Call(key, [a]), Call(key, [b])
	return Arrow(["a", "b"], Binary(Binary(a, ">", b), "-", Binary(a, "<", b)))


@builtin("sorted")
def emit_sorted(
	xs: Any, *, key: Any = None, reverse: Any = None, ctx: Transpiler
) -> ExprNode:
	"""sorted(xs, key=, reverse=) -> [...xs].sort(cmp)"""
	cmp = _compare(None if key is None else ctx.emit_expr(key))
	result: ExprNode = Call(Member(Array([Spread(ctx.emit_expr(xs))]), "sort"), [cmp])
	if reverse is None:
		return result
	return Ternary(ctx.emit_expr(reverse), Call(Member(result, "reverse"), []), result)


@builtin("zip")
def emit_zip(*args: Any, ctx: Transpiler) -> ExprNode:
	if not args:
		return Array([])
	js = [ctx.emit_expr(a) for a in args]
	length = _math("min", *(Member(x, "length") for x in js))
	pick = Arrow(["_", "i"], Array([Subscript(x, Identifier("i")) for x in js]))
	return _array_from(Object([("length", length)]), pick)


@builtin("sum")
def emit_sum(*args: Any, ctx: Transpiler) -> ExprNode:
	"""sum(xs, start=0) -> xs.reduce((a, b) => a + b, start)"""
	_arity("sum", args, 1, 2)
	start = ctx.emit_expr(args[1]) if builtins.len(args) == 2 else Literal(0)
	add = Arrow(["a", "b"], Binary(Identifier("a"), "+", Identifier("b")))
	return Call(Member(ctx.emit_expr(args[0]), "reduce"), [add, start])


def _quantifier(method: str, x: Any, ctx: Transpiler) -> ExprNode:
	js = ctx.emit_expr(x)
	# any(f(v) for v in xs) -> xs.some(v => f(v))
	if isinstance(js, Call) and isinstance(js.callee, Member) and js.callee.prop == "map":
		return Call(Member(js.callee.obj, method), [js.args[0]])
	return Call(Member(js, method), [Arrow(["v"], Identifier("v"))])


@builtin("any")
def emit_any(x: Any, *, ctx: Transpiler) -> ExprNode:
	return _quantifier("some", x, ctx)


@builtin("all")
def emit_all(x: Any, *, ctx: Transpiler) -> ExprNode:
	return _quantifier("every", x, ctx)


@builtin("chr")
def emit_chr(x: Any, *, ctx: Transpiler) -> ExprNode:
	return Call(Member(Identifier("String"), "fromCharCode"), [ctx.emit_expr(x)])


@builtin("ord")
def emit_ord(x: Any, *, ctx: Transpiler) -> ExprNode:
	return Call(Member(ctx.emit_expr(x), "charCodeAt"), [Literal(0)])


@builtin("isinstance")
def emit_isinstance(*args: Any, ctx: Transpiler) -> ExprNode:
	raise TranspileError("isinstance() is not supported in component bodies")


# =============================================================================
# Builtin methods
# =============================================================================
#
# One class per receiver shape. A method returning None means the JS method
# of the same name already behaves like the Python one.


class BuiltinMethods(ABC):
	"""Method translations for one receiver shape."""

	# Inferred type tag of receivers this class applies to
	shape: builtins.str = ""
	methods: builtins.frozenset[builtins.str] = builtins.frozenset()

	def __init__(self, obj: ExprNode) -> None:
		self.this: ExprNode = obj

	def __init_subclass__(cls, **kwargs: Any) -> None:
		super().__init_subclass__(**kwargs)
		cls.methods = builtins.frozenset(
			k for k, v in cls.__dict__.items() if not k.startswith("_") and inspect.isfunction(v)
		)

	@classmethod
	@abstractmethod
	def runtime_check(cls, expr: ExprNode) -> ExprNode:
		"""JS expression testing whether `expr` has this shape at runtime."""


def _discard(expr: ExprNode) -> ExprNode:
	"""Evaluate expr for its side effect and yield undefined, like a Python None return."""
	return Subscript(Array([expr, Undefined()]), Literal(1))


def unwrap_discard(expr: ExprNode) -> ExprNode:
	"""The side effect of a discarded expression, for statement position."""
	if (
		isinstance(expr, Subscript)
		and isinstance(expr.obj, Array)
		and len(expr.obj.elements) == 2
		and isinstance(expr.obj.elements[1], Undefined)
		and isinstance(expr.key, Literal)
		and expr.key.value == 1
	):
		return expr.obj.elements[0]
	return expr


class StringMethods(BuiltinMethods):
	shape = "string"

	@classmethod
	@override
	def runtime_check(cls, expr: ExprNode) -> ExprNode:
		return Binary(Unary("typeof", expr), "===", Literal("string"))

	def lower(self) -> ExprNode:
		return Call(Member(self.this, "toLowerCase"), [])

	def upper(self) -> ExprNode:
		return Call(Member(self.this, "toUpperCase"), [])

	def strip(self) -> ExprNode:
		return Call(Member(self.this, "trim"), [])

	def lstrip(self) -> ExprNode:
		return Call(Member(self.this, "trimStart"), [])

	def rstrip(self) -> ExprNode:
		return Call(Member(self.this, "trimEnd"), [])

	def startswith(self, prefix: ExprNode) -> ExprNode:
		return Call(Member(self.this, "startsWith"), [prefix])

	def endswith(self, suffix: ExprNode) -> ExprNode:
		return Call(Member(self.this, "endsWith"), [suffix])

	def replace(self, old: ExprNode, new: ExprNode) -> ExprNode:
		return Call(Member(self.this, "replaceAll"), [old, new])

	def split(self, sep: ExprNode | None = None) -> ExprNode | None:
		if sep is None:
			# str.split() splits on runs of whitespace
			trimmed = Call(Member(self.this, "trim"), [])
			return Call(Member(trimmed, "split"), [Identifier("/\\s+/")])
		return None

	def join(self, items: ExprNode) -> ExprNode:
		"""sep.join(items) -> items.join(sep)"""
		return Call(Member(items, "join"), [self.this])

	def find(self, sub: ExprNode) -> ExprNode:
		return Call(Member(self.this, "indexOf"), [sub])

	def capitalize(self) -> ExprNode:
		head = Call(Member(Call(Member(self.this, "charAt"), [Literal(0)]), "toUpperCase"), [])
		tail = Call(Member(Call(Member(self.this, "slice"), [Literal(1)]), "toLowerCase"), [])
		return Binary(head, "+", tail)

	def zfill(self, width: ExprNode) -> ExprNode:
		return Call(Member(self.this, "padStart"), [width, Literal("0")])

	def isdigit(self) -> ExprNode:
		return Call(Member(Identifier("/^\\d+$/"), "test"), [self.this])


class ListMethods(BuiltinMethods):
	shape = "seq"

	@classmethod
	@override
	def runtime_check(cls, expr: ExprNode) -> ExprNode:
		return Call(Member(Identifier("Array"), "isArray"), [expr])

	def append(self, value: ExprNode) -> ExprNode:
		return _discard(Call(Member(self.this, "push"), [value]))

	def extend(self, items: ExprNode) -> ExprNode:
		return _discard(Call(Member(self.this, "push"), [Spread(items)]))

	def insert(self, index: ExprNode, value: ExprNode) -> ExprNode:
		return _discard(Call(Member(self.this, "splice"), [index, Literal(0), value]))

	def pop(self, index: ExprNode | None = None) -> ExprNode | None:
		if index is None:
			return None
		return Subscript(Call(Member(self.this, "splice"), [index, Literal(1)]), Literal(0))

	def index(self, value: ExprNode) -> ExprNode:
		return Call(Member(self.this, "indexOf"), [value])

	def count(self, value: ExprNode) -> ExprNode:
		same = Arrow(["v"], Binary(Identifier("v"), "===", value))
		return Member(Call(Member(self.this, "filter"), [same]), "length")

	def copy(self) -> ExprNode:
		return Call(Member(self.this, "slice"), [])


class DictMethods(BuiltinMethods):
	"""Python dicts compile to JS Maps."""

	shape = "map"

	@classmethod
	@override
	def runtime_check(cls, expr: ExprNode) -> ExprNode:
		return Binary(expr, "instanceof", Identifier("Map"))

	def get(self, key: ExprNode, default: ExprNode | None = None) -> ExprNode | None:
		if default is None:
			return None
		return Binary(Call(Member(self.this, "get"), [key]), "??", default)

	def keys(self) -> ExprNode:
		return Array([Spread(Call(Member(self.this, "keys"), []))])

	def values(self) -> ExprNode:
		return Array([Spread(Call(Member(self.this, "values"), []))])

	def items(self) -> ExprNode:
		return Array([Spread(Call(Member(self.this, "entries"), []))])

	def copy(self) -> ExprNode:
		return New(Identifier("Map"), [self.this])


class SetMethods(BuiltinMethods):
	shape = "set"

	@classmethod
	@override
	def runtime_check(cls, expr: ExprNode) -> ExprNode:
		return Binary(expr, "instanceof", Identifier("Set"))

	def add(self, value: ExprNode) -> ExprNode:
		return _discard(Call(Member(self.this, "add"), [value]))

	def discard(self, value: ExprNode) -> ExprNode:
		return _discard(Call(Member(self.this, "delete"), [value]))

	def copy(self) -> ExprNode:
		return New(Identifier("Set"), [self.this])


# Later entries take priority at runtime (outermost ternary)
METHOD_CLASSES: builtins.tuple[builtins.type[BuiltinMethods], ...] = (
	DictMethods,
	SetMethods,
	ListMethods,
	StringMethods,
)
ALL_METHODS = builtins.frozenset().union(*(cls.methods for cls in METHOD_CLASSES))


def _dispatch(
	cls: builtins.type[BuiltinMethods],
	obj: ExprNode,
	method: str,
	args: list[ExprNode],
	kwargs: builtins.dict[builtins.str, ExprNode],
) -> ExprNode | None:
	if method not in cls.methods:
		return None
	try:
		return builtins.getattr(cls(obj), method)(*args, **kwargs)
	except TypeError:
		# Arity mismatch: leave it to the plain JS method call
		return None


def _literal_shape(obj: ExprNode) -> builtins.str | None:
	if isinstance(obj, Literal) and isinstance(obj.value, str):
		return "string"
	if isinstance(obj, Template):
		return "string"
	if isinstance(obj, Array):
		return "seq"
	if isinstance(obj, New) and isinstance(obj.ctor, Identifier):
		return {"Map": "map", "Set": "set"}.get(obj.ctor.name)
	return None


def emit_method(
	obj: ExprNode,
	method: str,
	args: list[ExprNode],
	kwargs: builtins.dict[builtins.str, ExprNode] | None = None,
	shapes: builtins.frozenset[builtins.str] = builtins.frozenset(),
) -> ExprNode | None:
	"""Translate `obj.method(*args)` when it names a Python builtin method.

	`shapes` is the receiver's inferred type set (empty when unknown). When a
	single shape is known, dispatch is direct. Otherwise every candidate is
	guarded by a runtime type check, falling back to the plain method call.

	Returns None when the call should be emitted unchanged.
	"""
	if method not in ALL_METHODS:
		return None
	kwargs = kwargs or {}

	shape = _literal_shape(obj)
	if shape is None and builtins.len(shapes) == 1:
		(shape,) = shapes
	if shape is not None:
		for cls in METHOD_CLASSES:
			if cls.shape == shape:
				return _dispatch(cls, obj, method, args, kwargs)
		return None

	fallback: ExprNode = Call(Member(obj, method), args)
	expr = fallback
	for cls in METHOD_CLASSES:
		dispatched = _dispatch(cls, obj, method, args, kwargs)
		if dispatched is not None:
			expr = Ternary(cls.runtime_check(obj), dispatched, expr)
	return None if expr is fallback else expr
