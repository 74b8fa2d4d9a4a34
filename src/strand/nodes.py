"""JavaScript syntax tree.

Every node renders itself into an output buffer. Expression nodes also act
as the values a component body sees: a global that resolves to an ExprNode
can intercept calls, attribute access and subscripts on itself, which is how
macros like `h` and the builtins are implemented.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias
from typing_extensions import override
from typing import Literal as Lit

if TYPE_CHECKING:
	from strand.transpiler import Transpiler

Primitive: TypeAlias = bool | int | float | str | None

# id(python value) -> the node it compiles to
EXPR_REGISTRY: dict[int, "ExprNode"] = {}
TransformerFn: TypeAlias = Callable[..., "ExprNode"]

# Binding strength of the primary forms: names, literals, calls, member access
PRIMARY = 20


# =============================================================================
# Base classes
# =============================================================================
class Node(ABC):
	__slots__: tuple[str, ...] = ()

	@abstractmethod
	def emit(self, out: list[str]) -> None:
		"""Append the JavaScript text of this node to `out`."""


class ExprNode(Node, ABC):
	"""An expression, and the compile-time stand-in for a Python value.

	Subclasses override the `emit_*` hooks to change what happens when a
	component body calls, reads an attribute of or subscripts the value.
	"""

	__slots__: tuple[str, ...] = ()

	def precedence(self) -> int:
		return PRIMARY

	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		"""`value(...)`. Arguments arrive as Python AST nodes."""
		raise NotImplementedError(f"{type(self).__name__} is not callable")

	def emit_getattr(self, attr: str, ctx: Transpiler) -> ExprNode:
		return Member(self, attr)

	def emit_subscript(self, key: Any, ctx: Transpiler) -> ExprNode:
		return Subscript(self, ctx.emit_expr(key))

	@staticmethod
	def of(value: Any) -> ExprNode:
		"""The node a Python value compiles to.

		Registered values win over the structural conversion of primitives,
		lists, tuples and dicts. Dicts become `new Map(...)`.
		"""
		if isinstance(value, ExprNode):
			return value
		registered = EXPR_REGISTRY.get(id(value))
		if registered is not None:
			return registered
		if value is None or isinstance(value, (bool, int, float, str)):
			return Literal(value)
		if isinstance(value, (list, tuple)):
			return Array([ExprNode.of(v) for v in value])  # pyright: ignore[reportUnknownVariableType]
		if isinstance(value, dict):
			pairs = [
				Array([ExprNode.of(k), ExprNode.of(v)])
				for k, v in value.items()  # pyright: ignore[reportUnknownVariableType]
			]
			return New(Identifier("Map"), [Array(pairs)])
		raise TypeError(f"Cannot convert {type(value).__name__} to ExprNode")

	@staticmethod
	def register(value: Any, expr: ExprNode | TransformerFn) -> None:
		"""Make `value` compile to `expr` wherever a body references it.

		A plain callable is wrapped in a Transformer.
		"""
		if callable(expr) and not isinstance(expr, ExprNode):
			expr = Transformer(expr)
		EXPR_REGISTRY[id(value)] = expr


class StmtNode(Node, ABC):
	__slots__: tuple[str, ...] = ()


# =============================================================================
# Expressions
# =============================================================================


@dataclass(slots=True)
class Identifier(ExprNode):
	name: str

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.name)


@dataclass(slots=True)
class Literal(ExprNode):
	"""`null`, booleans, numbers and double-quoted strings."""

	value: Primitive

	@override
	def emit(self, out: list[str]) -> None:
		match self.value:
			case None:
				out.append("null")
			case bool():
				out.append("true" if self.value else "false")
			case str():
				out.append(f'"{_escape(self.value, _STRING_ESCAPES)}"')
			case _:
				out.append(str(self.value))


class Undefined(ExprNode):
	"""`undefined`, the value of a discarded call. None compiles to `null`."""

	__slots__: tuple[str, ...] = ()

	@override
	def emit(self, out: list[str]) -> None:
		out.append("undefined")


@dataclass(slots=True)
class Array(ExprNode):
	elements: Sequence[ExprNode]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("[")
		_emit_list(self.elements, out)
		out.append("]")


@dataclass(slots=True)
class Object(ExprNode):
	"""Object literal. String keys are quoted, node keys are computed."""

	props: Sequence[tuple[str | ExprNode, ExprNode]]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("{")
		for i, (key, value) in enumerate(self.props):
			if i:
				out.append(", ")
			if isinstance(key, str):
				out.append(f'"{_escape(key, _STRING_ESCAPES)}": ')
			else:
				out.append("[")
				key.emit(out)
				out.append("]: ")
			value.emit(out)
		out.append("}")


@dataclass(slots=True)
class Member(ExprNode):
	obj: ExprNode
	prop: str

	@override
	def emit(self, out: list[str]) -> None:
		_emit_operand(self.obj, out)
		out.append(f".{self.prop}")


@dataclass(slots=True)
class Subscript(ExprNode):
	obj: ExprNode
	key: ExprNode

	@override
	def emit(self, out: list[str]) -> None:
		_emit_operand(self.obj, out)
		out.append("[")
		self.key.emit(out)
		out.append("]")


@dataclass(slots=True)
class Call(ExprNode):
	callee: ExprNode
	args: Sequence[ExprNode]

	@override
	def emit(self, out: list[str]) -> None:
		_emit_operand(self.callee, out)
		out.append("(")
		_emit_list(self.args, out)
		out.append(")")


@dataclass(slots=True)
class New(ExprNode):
	ctor: ExprNode
	args: Sequence[ExprNode]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("new ")
		self.ctor.emit(out)
		out.append("(")
		_emit_list(self.args, out)
		out.append(")")


@dataclass(slots=True)
class Unary(ExprNode):
	"""Prefix operator: `!x`, `-x`, `typeof x`, `await x`."""

	op: str
	operand: ExprNode

	@property
	def _key(self) -> str:
		# Unary +/- bind tighter than their binary spellings
		return f"{self.op}u" if self.op in ("+", "-") else self.op

	@override
	def precedence(self) -> int:
		return _PRECEDENCE.get(self._key, 17)

	@override
	def emit(self, out: list[str]) -> None:
		out.append(f"{self.op} " if self.op.isalpha() else self.op)
		# `- -x` must not become `--x`
		sign_pair = isinstance(self.operand, Unary) and {self.op, self.operand.op} <= {"+", "-"}
		_emit_wrapped(
			self.operand, out, sign_pair or self.operand.precedence() < self.precedence()
		)


@dataclass(slots=True)
class Binary(ExprNode):
	left: ExprNode
	op: str
	right: ExprNode

	@override
	def precedence(self) -> int:
		return _PRECEDENCE.get(self.op, 0)

	@override
	def emit(self, out: list[str]) -> None:
		# JS rejects an unparenthesized unary operand on the left of **
		signed_base = self.op == "**" and isinstance(self.left, Unary)
		_emit_wrapped(self.left, out, signed_base or _needs_parens(self.left, self.op, "left"))
		out.append(f" {self.op} ")
		_emit_wrapped(self.right, out, _needs_parens(self.right, self.op, "right"))


@dataclass(slots=True)
class Ternary(ExprNode):
	cond: ExprNode
	then: ExprNode
	else_: ExprNode

	@override
	def precedence(self) -> int:
		return _PRECEDENCE["?:"]

	@override
	def emit(self, out: list[str]) -> None:
		_emit_wrapped(self.cond, out, _needs_parens(self.cond, "?:", "left"))
		out.append(" ? ")
		self.then.emit(out)
		out.append(" : ")
		self.else_.emit(out)


@dataclass(slots=True)
class Arrow(ExprNode):
	"""Expression-bodied arrow function."""

	params: Sequence[str]
	body: ExprNode

	@override
	def precedence(self) -> int:
		return _PRECEDENCE["=>"]

	@override
	def emit(self, out: list[str]) -> None:
		if len(self.params) == 1 and _IDENTIFIER.match(self.params[0]):
			out.append(self.params[0])
		else:
			out.append(f"({', '.join(self.params)})")
		out.append(" => ")
		# A bare `{` would start a block body
		_emit_wrapped(self.body, out, isinstance(self.body, Object))


@dataclass(slots=True)
class Template(ExprNode):
	"""Template literal. `parts` mixes raw text and interpolated nodes."""

	parts: Sequence[str | ExprNode]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("`")
		for part in self.parts:
			if isinstance(part, str):
				out.append(_escape(part, _TEMPLATE_ESCAPES))
			else:
				out.append("${")
				part.emit(out)
				out.append("}")
		out.append("`")


@dataclass(slots=True)
class Spread(ExprNode):
	expr: ExprNode

	@override
	def emit(self, out: list[str]) -> None:
		out.append("...")
		self.expr.emit(out)


@dataclass(slots=True)
class Transformer(ExprNode):
	"""A compile-time function: called with the raw AST arguments and
	`ctx=`, it returns the node the call compiles to.

	Builtins (`len`, `str`, ...) and plain callables registered through
	`ExprNode.register` or `PyModule.register` are Transformers.
	"""

	fn: TransformerFn
	name: str = ""

	@property
	def label(self) -> str:
		return self.name or "Transformer"

	@override
	def emit(self, out: list[str]) -> None:
		raise TypeError(f"{self.label} can only be called")

	@override
	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		return self.fn(*args, ctx=ctx, **kwargs)

	@override
	def emit_getattr(self, attr: str, ctx: Transpiler) -> ExprNode:
		raise TypeError(f"{self.label} has no attributes")

	@override
	def emit_subscript(self, key: Any, ctx: Transpiler) -> ExprNode:
		raise TypeError(f"{self.label} cannot be subscripted")


@dataclass(slots=True)
class Function(ExprNode):
	"""`function name(params) { body }`. The name is optional."""

	params: Sequence[str]
	body: Sequence[StmtNode]
	name: str | None = None
	is_async: bool = False

	@override
	def emit(self, out: list[str]) -> None:
		if self.is_async:
			out.append("async ")
		out.append(f"function {self.name}(" if self.name else "function(")
		out.append(", ".join(self.params))
		out.append(") ")
		_emit_block(self.body, out)


# =============================================================================
# Statements
# =============================================================================


@dataclass(slots=True)
class Return(StmtNode):
	value: ExprNode | None = None

	@override
	def emit(self, out: list[str]) -> None:
		if self.value is None:
			out.append("return;")
			return
		out.append("return ")
		self.value.emit(out)
		out.append(";")


@dataclass(slots=True)
class If(StmtNode):
	cond: ExprNode
	then: Sequence[StmtNode]
	else_: Sequence[StmtNode] = ()

	@override
	def emit(self, out: list[str]) -> None:
		out.append("if (")
		self.cond.emit(out)
		out.append(") ")
		_emit_block(self.then, out)
		if self.else_:
			out.append(" else ")
			_emit_block(self.else_, out)


@dataclass(slots=True)
class ForOf(StmtNode):
	"""`for (const target of iter) { ... }`. `target` may be an array pattern."""

	target: str
	iter: ExprNode
	body: Sequence[StmtNode]

	@override
	def emit(self, out: list[str]) -> None:
		out.append(f"for (const {self.target} of ")
		self.iter.emit(out)
		out.append(") ")
		_emit_block(self.body, out)


@dataclass(slots=True)
class While(StmtNode):
	cond: ExprNode
	body: Sequence[StmtNode]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("while (")
		self.cond.emit(out)
		out.append(") ")
		_emit_block(self.body, out)


@dataclass(slots=True)
class Break(StmtNode):
	@override
	def emit(self, out: list[str]) -> None:
		out.append("break;")


@dataclass(slots=True)
class Continue(StmtNode):
	@override
	def emit(self, out: list[str]) -> None:
		out.append("continue;")


@dataclass(slots=True)
class Assign(StmtNode):
	"""Declaration, assignment or augmented assignment.

	`target` is a name, a destructuring pattern such as "[a, b]" or
	"{a, b = 1}", or a member/subscript node. `op` turns `=` into `op=`.
	"""

	target: str | ExprNode
	value: ExprNode
	declare: Lit["let", "const"] | None = None
	op: str | None = None

	@override
	def emit(self, out: list[str]) -> None:
		if self.declare:
			out.append(f"{self.declare} ")
		if isinstance(self.target, str):
			out.append(self.target)
		else:
			self.target.emit(out)
		out.append(f" {self.op or ''}= ")
		self.value.emit(out)
		out.append(";")


@dataclass(slots=True)
class Declare(StmtNode):
	"""`let a, b;` for locals hoisted to the top of a function."""

	names: Sequence[str]

	@override
	def emit(self, out: list[str]) -> None:
		out.append(f"let {', '.join(self.names)};")


@dataclass(slots=True)
class ExprStmt(StmtNode):
	expr: ExprNode

	@override
	def emit(self, out: list[str]) -> None:
		self.expr.emit(out)
		out.append(";")


@dataclass(slots=True)
class Stmts(StmtNode):
	"""Several statements in the enclosing scope, without braces."""

	body: Sequence[StmtNode]

	@override
	def emit(self, out: list[str]) -> None:
		for i, stmt in enumerate(self.body):
			if i:
				out.append("\n")
			stmt.emit(out)


@dataclass(slots=True)
class Throw(StmtNode):
	value: ExprNode

	@override
	def emit(self, out: list[str]) -> None:
		out.append("throw ")
		self.value.emit(out)
		out.append(";")


@dataclass(slots=True)
class FunctionDecl(StmtNode):
	"""Hoisted `function name(...) { ... }` declaration."""

	fn: Function

	@override
	def emit(self, out: list[str]) -> None:
		if not self.fn.name:
			raise ValueError("Function declarations require a name")
		self.fn.emit(out)


@dataclass(slots=True)
class Export(StmtNode):
	stmt: StmtNode

	@override
	def emit(self, out: list[str]) -> None:
		out.append("export ")
		self.stmt.emit(out)


@dataclass(slots=True)
class Comment(StmtNode):
	"""JSDoc block, on one line when the text fits on one."""

	text: str

	@override
	def emit(self, out: list[str]) -> None:
		lines = [line.strip() for line in self.text.replace("*/", "*\\/").strip().splitlines()]
		if len(lines) == 1:
			out.append(f"/** {lines[0]} */")
			return
		out.append("/**")
		out.extend(f"\n * {line}" if line else "\n *" for line in lines)
		out.append("\n */")


# =============================================================================
# Rendering
# =============================================================================


def emit(node: Node) -> str:
	"""Render a node to JavaScript source."""
	out: list[str] = []
	node.emit(out)
	return "".join(out)


# Binding strength of the operators the compiler emits (higher binds tighter)
_PRECEDENCE: dict[str, int] = {
	"!": 17,
	"+u": 17,
	"-u": 17,
	"typeof": 17,
	"await": 17,
	"**": 16,
	**dict.fromkeys(["*", "/", "%"], 15),
	**dict.fromkeys(["+", "-"], 14),
	**dict.fromkeys(["<", "<=", ">", ">=", "instanceof", "in"], 12),
	**dict.fromkeys(["==", "!=", "===", "!=="], 11),
	"|": 8,
	"&&": 7,
	"||": 6,
	"??": 6,
	"?:": 4,
	"=>": 3,
}

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")

_STRING_ESCAPES: dict[str, str] = {
	"\\": "\\\\",
	'"': '\\"',
	"\n": "\\n",
	"\r": "\\r",
	"\t": "\\t",
	"\b": "\\b",
	"\f": "\\f",
	"\v": "\\v",
	"\x00": "\\x00",
	"\u2028": "\\u2028",
	"\u2029": "\\u2029",
}
_TEMPLATE_ESCAPES: dict[str, str] = {
	**{k: v for k, v in _STRING_ESCAPES.items() if k != '"'},
	"`": "\\`",
	"${": "\\${",
}


def _escape(text: str, table: dict[str, str]) -> str:
	# Backslash first so later replacements are not escaped twice
	for raw, escaped in table.items():
		text = text.replace(raw, escaped)
	return text


def _needs_parens(child: ExprNode, parent_op: str, side: Lit["left", "right"]) -> bool:
	"""Whether `child` must be parenthesized as an operand of `parent_op`."""
	if isinstance(child, (Ternary, Arrow)):
		return True
	mine, theirs = child.precedence(), _PRECEDENCE.get(parent_op, 0)
	if mine != theirs:
		return mine < theirs
	if not isinstance(child, Binary):
		return False
	# Equal strength: only the side that associativity already groups is free
	return side == ("left" if parent_op == "**" else "right")


def _emit_wrapped(node: ExprNode, out: list[str], parens: bool) -> None:
	if parens:
		out.append("(")
	node.emit(out)
	if parens:
		out.append(")")


def _emit_operand(node: ExprNode, out: list[str]) -> None:
	"""The object of a member access, subscript or call."""
	_emit_wrapped(
		node, out, node.precedence() < PRIMARY or isinstance(node, (Ternary, Function))
	)


def _emit_list(items: Sequence[ExprNode], out: list[str]) -> None:
	for i, item in enumerate(items):
		if i:
			out.append(", ")
		item.emit(out)


def _emit_block(body: Sequence[StmtNode], out: list[str]) -> None:
	out.append("{\n")
	for stmt in body:
		stmt.emit(out)
		out.append("\n")
	out.append("}")
