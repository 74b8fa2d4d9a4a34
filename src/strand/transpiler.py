"""
Python -> JavaScript transpiler.

Transpiles a restricted subset of Python into the JS node AST. Global names
are resolved through a `deps` mapping of ExprNodes. Alongside emission the
transpiler keeps a small static type environment (name -> set of shape tags)
that the element macro uses to classify its arguments.
"""

from __future__ import annotations

import ast
import builtins as pybuiltins
import re
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar

from strand.builtins import BUILTINS, emit_method, unwrap_discard
from strand.context import BuildContext
from strand.errors import TranspileError
from strand.imports import Importable
from strand.inference import (
	MAP,
	OBJECT,
	SEQ,
	SET,
	STRING,
	Shapes,
	annotation_shapes,
	binop_shapes,
	infer,
	is_repeat,
	union,
)
from strand.nodes import (
	Array,
	Arrow,
	Assign,
	Binary,
	Break,
	Call,
	Continue,
	Declare,
	ExprNode,
	ExprStmt,
	ForOf,
	Function,
	Identifier,
	If,
	Literal,
	Member,
	New,
	Return,
	Spread,
	StmtNode,
	Stmts,
	Subscript,
	Template,
	Ternary,
	Throw,
	Transformer,
	Unary,
	While,
	emit,
)
from strand.py_module import PyModule

ALLOWED_BINOPS: dict[type[ast.operator], str] = {
	ast.Add: "+",
	ast.Sub: "-",
	ast.Mult: "*",
	ast.Div: "/",
	ast.Mod: "%",
	ast.Pow: "**",
}

ALLOWED_UNOPS: dict[type[ast.unaryop], str] = {
	ast.UAdd: "+",
	ast.USub: "-",
	ast.Not: "!",
}

ALLOWED_CMPOPS: dict[type[ast.cmpop], str] = {
	ast.Eq: "===",
	ast.NotEq: "!==",
	ast.Lt: "<",
	ast.LtE: "<=",
	ast.Gt: ">",
	ast.GtE: ">=",
}

_NO_SHAPES: Shapes = frozenset()
_R = TypeVar("_R")


def is_docstring(stmt: ast.stmt) -> bool:
	return (
		isinstance(stmt, ast.Expr)
		and isinstance(stmt.value, ast.Constant)
		and isinstance(stmt.value.value, str)
	)


def strip_docstring(body: list[ast.stmt]) -> list[ast.stmt]:
	if body and is_docstring(body[0]):
		return body[1:]
	return body


def _walk_scope(stmts: list[ast.stmt]) -> Iterator[ast.AST]:
	"""ast.walk over statements without entering nested scopes."""
	todo: list[ast.AST] = list(stmts)
	while todo:
		node = todo.pop()
		yield node
		for child in ast.iter_child_nodes(node):
			if isinstance(
				child,
				(
					ast.FunctionDef,
					ast.AsyncFunctionDef,
					ast.Lambda,
					ast.ClassDef,
					ast.ListComp,
					ast.SetComp,
					ast.DictComp,
					ast.GeneratorExp,
				),
			):
				continue
			todo.append(child)


def stored_names(stmts: list[ast.stmt]) -> set[str]:
	"""Names bound by assignment anywhere in `stmts` (same scope only)."""
	return {
		n.id
		for n in _walk_scope(stmts)
		if isinstance(n, ast.Name) and isinstance(n.ctx, ast.Store)
	}


def _block_assigned(body: list[ast.stmt]) -> set[str]:
	"""Names first assigned inside nested blocks (if/for/while bodies).

	JS `let` is block scoped while Python locals are function scoped, so these
	are declared once at the top of the function. Names already assigned at
	the top level before the block keep their own declaration.
	"""
	names: set[str] = set()
	seen: set[str] = set()
	for stmt in body:
		if isinstance(stmt, ast.If):
			names |= stored_names(stmt.body + stmt.orelse) - seen
		elif isinstance(stmt, (ast.For, ast.While)):
			inner = stored_names(stmt.body)
			if isinstance(stmt, ast.For):
				# The loop target itself is declared by the for-of header
				inner -= {n.id for n in ast.walk(stmt.target) if isinstance(n, ast.Name)}
			names |= inner - seen
		elif not isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
			seen |= stored_names([stmt])
	return names


class Transpiler:
	"""Transpile a Python function body to JS nodes.

	Dependencies are ExprNode instances substituted when their names are
	referenced. ExprNode subclasses can override:
	- emit_call: custom call behavior (macros)
	- emit_getattr: custom attribute access
	- emit_subscript: custom subscript behavior

	`unresolved` maps global names that could not be converted to a reason,
	reported if the body actually references them.
	"""

	fndef: ast.FunctionDef | ast.AsyncFunctionDef
	args: list[str]
	deps: Mapping[str, ExprNode]
	build: BuildContext
	unresolved: Mapping[str, str]
	locals: set[str]
	types: dict[str, Shapes]
	_unstable: set[str]
	# Statements of the current scope from the one being emitted onward
	_rest: list[ast.stmt]

	def __init__(
		self,
		fndef: ast.FunctionDef | ast.AsyncFunctionDef,
		deps: Mapping[str, ExprNode],
		build: BuildContext | None = None,
		*,
		unresolved: Mapping[str, str] | None = None,
	) -> None:
		self.fndef = fndef
		self.args = [arg.arg for arg in fndef.args.args]
		self.deps = deps
		self.build = build if build is not None else BuildContext("__main__")
		self.unresolved = unresolved or {}
		self.locals = set(self.args)
		self.types = {}
		self._unstable = set()
		self._rest = []
		for arg in fndef.args.args:
			if arg.annotation is not None:
				self.bind(arg.arg, annotation_shapes(arg.annotation, self))

	@property
	def module(self) -> str:
		return self.build.module

	def error(self, message: str, node: ast.AST | None = None) -> TranspileError:
		return TranspileError(message, module=self.module).at(node)

	# --- Type environment ----------------------------------------------------

	def bind(self, name: str, shapes: Shapes) -> None:
		"""Record the inferred shapes of a (re)bound local."""
		if name in self._unstable:
			self.types[name] = _NO_SHAPES
		elif name in self.types:
			self.types[name] = union(self.types[name], shapes)
		else:
			self.types[name] = shapes

	def forget(self, names: set[str]) -> None:
		"""Mark names as having unknown shapes for the rest of the body."""
		self._unstable |= names
		for name in names:
			self.types[name] = _NO_SHAPES

	def shape_of(self, node: ast.expr) -> Shapes:
		return infer(node, self)

	def resolve(self, node: ast.expr) -> ExprNode | None:
		"""Statically resolve a name or dotted attribute to its ExprNode.

		Returns None for locals and anything that is not a known global.
		Never records imports or raises.
		"""
		if isinstance(node, ast.Name):
			if node.id in self.locals:
				return None
			if node.id in self.deps:
				return self.deps[node.id]
			return BUILTINS.get(node.id)
		if isinstance(node, ast.Attribute):
			base = self.resolve(node.value)
			if isinstance(base, PyModule):
				return base.members.get(node.attr)
		return None

	# --- Entrypoint ---------------------------------------------------------

	def transpile(self) -> Function | Arrow:
		"""Transpile the function to a Function or Arrow node.

		A body that is a single expression or return becomes an arrow:
			(params) => expr
		Everything else becomes:
			function(params) { ... }
		"""
		body = strip_docstring(self.fndef.body)

		if not body:
			return Arrow(self.args, Literal(None))

		if len(body) == 1 and isinstance(body[0], (ast.Return, ast.Expr)):
			self._rest = body
			return Arrow(self.args, self.emit_expr(body[0].value))

		stmts = self.emit_body(body)
		is_async = isinstance(self.fndef, ast.AsyncFunctionDef)
		return Function(self.args, stmts, is_async=is_async)

	def emit_body(self, body: list[ast.stmt]) -> list[StmtNode]:
		"""Emit a function body, hoisting locals first assigned inside blocks."""
		hoisted = sorted(_block_assigned(body) - self.locals)
		self.locals.update(hoisted)
		stmts: list[StmtNode] = [Declare(hoisted)] if hoisted else []
		outer = self._rest
		try:
			for i, stmt in enumerate(body):
				self._rest = body[i:]
				stmts.append(self.emit_stmt(stmt))
		finally:
			self._rest = outer
		return stmts

	# --- Statements ----------------------------------------------------------

	def emit_stmt(self, node: ast.stmt) -> StmtNode:
		"""Emit a statement, attaching the source line to any error."""
		try:
			return self._emit_stmt(node)
		except TranspileError as e:
			raise e.at(node, self.module) from None

	def _emit_stmt(self, node: ast.stmt) -> StmtNode:
		if isinstance(node, ast.Return):
			return Return(self.emit_expr(node.value) if node.value else None)

		if isinstance(node, ast.Break):
			return Break()

		if isinstance(node, ast.Continue):
			return Continue()

		if isinstance(node, ast.Pass):
			return Stmts([])

		if isinstance(node, ast.AugAssign):
			op_type = type(node.op)
			if op_type not in ALLOWED_BINOPS:
				raise self.error(
					f"Unsupported augmented assignment operator: {op_type.__name__}", node
				)
			target = self._emit_target(node.target)
			value = self.emit_expr(node.value)
			if isinstance(node.target, ast.Name):
				name = node.target.id
				current = self.types.get(name, _NO_SHAPES)
				right = self.shape_of(node.value)
				# s *= 3 -> s = s.repeat(3)
				combined = self._string_binop(
					node.op, current, right, Identifier(name), value, node
				)
				self.bind(name, binop_shapes(node.op, current, right))
				if combined is not None:
					return Assign(name, combined)
			return Assign(target, value, op=ALLOWED_BINOPS[op_type])

		if isinstance(node, ast.Assign):
			if len(node.targets) != 1:
				raise self.error("Chained assignment (a = b = ...) is not supported", node)
			return self._emit_assign(node.targets[0], node.value)

		if isinstance(node, ast.AnnAssign):
			if not isinstance(node.target, ast.Name):
				raise self.error("Only simple annotated assignments are supported", node)
			name = node.target.id
			self.bind(name, annotation_shapes(node.annotation, self))
			value = Literal(None) if node.value is None else self.emit_expr(node.value)
			if name in self.locals:
				return Assign(name, value)
			self.locals.add(name)
			return Assign(name, value, declare="let")

		if isinstance(node, ast.If):
			cond = self.emit_expr(node.test)
			then = [self.emit_stmt(s) for s in node.body]
			else_ = [self.emit_stmt(s) for s in node.orelse]
			return If(cond, then, else_)

		if isinstance(node, ast.Expr):
			return ExprStmt(unwrap_discard(self.emit_expr(node.value)))

		if isinstance(node, ast.While):
			if node.orelse:
				raise self.error("while/else is not supported", node)
			self.forget(stored_names(node.body))
			cond = self.emit_expr(node.test)
			return While(cond, [self.emit_stmt(s) for s in node.body])

		if isinstance(node, ast.For):
			return self._emit_for_loop(node)

		if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
			return self._emit_nested_function(node)

		if isinstance(node, ast.Raise):
			return self._emit_raise(node)

		raise self.error(f"Unsupported statement: {type(node).__name__}", node)

	def _emit_target(self, target: ast.expr) -> str | ExprNode:
		if isinstance(target, ast.Name):
			if target.id not in self.locals:
				raise self.error(f"Cannot update unbound local '{target.id}'", target)
			return target.id
		if isinstance(target, (ast.Attribute, ast.Subscript)):
			return self.emit_expr(target)
		raise self.error(f"Unsupported assignment target: {type(target).__name__}", target)

	def _emit_assign(self, target: ast.expr, value: ast.expr) -> StmtNode:
		if isinstance(target, ast.Name):
			name = target.id
			value_expr = self.emit_expr(value)
			self.bind(name, self.shape_of(value))
			if name in self.locals:
				return Assign(name, value_expr)
			self.locals.add(name)
			return Assign(name, value_expr, declare="let")

		if isinstance(target, (ast.Tuple, ast.List)):
			return self._emit_unpacking_assign(target, value)

		if isinstance(target, ast.Subscript) and self.shape_of(target.value) == {MAP}:
			obj = self.emit_expr(target.value)
			key = self.emit_expr(target.slice)
			return ExprStmt(Call(Member(obj, "set"), [key, self.emit_expr(value)]))

		if isinstance(target, (ast.Attribute, ast.Subscript)):
			return Assign(self.emit_expr(target), self.emit_expr(value))

		raise self.error(f"Unsupported assignment target: {type(target).__name__}", target)

	def _pattern(self, target: ast.expr, names: list[str]) -> str:
		"""Array destructuring pattern for a tuple/list target."""
		if isinstance(target, ast.Name):
			names.append(target.id)
			return target.id
		if isinstance(target, ast.Starred) and isinstance(target.value, ast.Name):
			names.append(target.value.id)
			return f"...{target.value.id}"
		if isinstance(target, (ast.Tuple, ast.List)):
			return "[" + ", ".join(self._pattern(e, names) for e in target.elts) + "]"
		raise self.error("Unpacking is only supported into plain names", target)

	def _emit_unpacking_assign(
		self, target: ast.Tuple | ast.List, value: ast.expr
	) -> StmtNode:
		"""a, (b, *c) = expr -> let [a, [b, ...c]] = expr;"""
		names: list[str] = []
		pattern = self._pattern(target, names)
		value_expr = self.emit_expr(value)
		self.forget(set(names))

		fresh = [n for n in names if n not in self.locals]
		self.locals.update(names)
		if len(fresh) == len(names):
			return Assign(pattern, value_expr, declare="let")
		if not fresh:
			return Assign(pattern, value_expr)
		return Stmts([Declare(fresh), Assign(pattern, value_expr)])

	def _emit_for_loop(self, node: ast.For) -> StmtNode:
		if node.orelse:
			raise self.error("for/else is not supported", node)

		iter_expr = self.emit_expr(node.iter)
		if isinstance(node.target, ast.Name):
			names = [node.target.id]
			target = node.target.id
		elif isinstance(node.target, (ast.Tuple, ast.List)):
			names = []
			target = self._pattern(node.target, names)
		else:
			raise self.error("Only name or tuple targets are supported in for-loops", node)

		self.locals.update(names)
		self.forget(set(names) | stored_names(node.body))
		body = [self.emit_stmt(s) for s in node.body]
		return ForOf(target, iter_expr, body)

	def _emit_raise(self, node: ast.Raise) -> StmtNode:
		exc = node.exc
		if exc is None:
			raise self.error("Bare raise is not supported", node)
		# raise ValueError("msg") -> throw new Error("msg")
		if (
			isinstance(exc, ast.Call)
			and isinstance(exc.func, ast.Name)
			and exc.func.id not in self.locals
			and exc.func.id not in self.deps
			and isinstance(getattr(pybuiltins, exc.func.id, None), type)
			and issubclass(getattr(pybuiltins, exc.func.id), BaseException)
		):
			return Throw(New(Identifier("Error"), [self.emit_expr(a) for a in exc.args]))
		return Throw(self.emit_expr(exc))

	def _params(self, args: ast.arguments) -> list[str]:
		if args.vararg or args.kwarg or args.kwonlyargs or args.posonlyargs:
			raise self.error("Only plain positional parameters are supported here")
		params: list[str] = [a.arg for a in args.args]
		# Defaults align with the last parameters
		offset = len(params) - len(args.defaults)
		for i, default in enumerate(args.defaults):
			params[offset + i] = f"{params[offset + i]} = {emit(self.emit_expr(default))}"
		return params

	def _rebound_later(self) -> set[str]:
		"""Names the enclosing scope assigns from the current statement onward.

		A nested function may run after any of these assignments, so captured
		values have unknown shapes inside it.
		"""
		rest = [
			s
			for s in self._rest
			if not isinstance(s, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef))
		]
		return stored_names(rest)

	def _scoped(
		self, names: list[str], fn: Callable[[], _R], assigned: set[str] | None = None
	) -> _R:
		"""Run `fn` inside a nested function scope.

		`names` are its parameters, `assigned` the locals its body binds. Both
		shadow outer names of the same spelling.
		"""
		saved = (set(self.locals), dict(self.types), set(self._unstable))
		own = set(names) | (assigned or set())
		captured = self._rebound_later() - own
		self.locals.update(captured)
		self.forget(captured)
		self.locals -= own
		for name in own:
			self.types.pop(name, None)
			self._unstable.discard(name)
		self.locals.update(names)
		try:
			return fn()
		finally:
			self.locals, self.types, self._unstable = saved

	def _emit_nested_function(
		self, node: ast.FunctionDef | ast.AsyncFunctionDef
	) -> StmtNode:
		"""def f(x): ... -> const f = function(x) { ... };"""
		if node.decorator_list:
			raise self.error("Decorators on nested functions are not supported", node)
		params = self._params(node.args)
		arg_names = [a.arg for a in node.args.args]
		inner = strip_docstring(node.body)
		body = self._scoped(arg_names, lambda: self.emit_body(inner), stored_names(inner))

		self.locals.add(node.name)
		self.bind(node.name, frozenset({"function"}))
		is_async = isinstance(node, ast.AsyncFunctionDef)
		return Assign(node.name, Function(params, body, is_async=is_async), declare="const")

	# --- Expressions ---------------------------------------------------------

	def emit_expr(self, node: ast.expr | None) -> ExprNode:
		"""Emit an expression."""
		if node is None:
			return Literal(None)

		if isinstance(node, ast.Constant):
			return self._emit_constant(node)

		if isinstance(node, ast.Name):
			return self._emit_name(node)

		if isinstance(node, (ast.List, ast.Tuple)):
			return Array([self.emit_expr(e) for e in node.elts])

		if isinstance(node, ast.Dict):
			return self._emit_dict(node)

		if isinstance(node, ast.Set):
			return New(Identifier("Set"), [Array([self.emit_expr(e) for e in node.elts])])

		if isinstance(node, ast.BinOp):
			return self._emit_binop(node)

		if isinstance(node, ast.UnaryOp):
			op = type(node.op)
			if op not in ALLOWED_UNOPS:
				raise self.error(f"Unsupported unary operator: {op.__name__}", node)
			return Unary(ALLOWED_UNOPS[op], self.emit_expr(node.operand))

		if isinstance(node, ast.BoolOp):
			op = "&&" if isinstance(node.op, ast.And) else "||"
			values = [self.emit_expr(v) for v in node.values]
			result = values[0]
			for v in values[1:]:
				result = Binary(result, op, v)
			return result

		if isinstance(node, ast.Compare):
			return self._emit_compare(node)

		if isinstance(node, ast.IfExp):
			return Ternary(
				self.emit_expr(node.test),
				self.emit_expr(node.body),
				self.emit_expr(node.orelse),
			)

		if isinstance(node, ast.Call):
			return self._emit_call(node)

		if isinstance(node, ast.Attribute):
			return self.emit_expr(node.value).emit_getattr(node.attr, self)

		if isinstance(node, ast.Subscript):
			return self._emit_subscript(node)

		if isinstance(node, ast.JoinedStr):
			return self._emit_fstring(node)

		if isinstance(node, (ast.ListComp, ast.GeneratorExp)):
			return self._emit_comprehension_chain(
				node.generators, lambda: self.emit_expr(node.elt)
			)

		if isinstance(node, ast.SetComp):
			items = self._emit_comprehension_chain(
				node.generators, lambda: self.emit_expr(node.elt)
			)
			return New(Identifier("Set"), [items])

		if isinstance(node, ast.DictComp):
			pairs = self._emit_comprehension_chain(
				node.generators,
				lambda: Array([self.emit_expr(node.key), self.emit_expr(node.value)]),
			)
			return New(Identifier("Map"), [pairs])

		if isinstance(node, ast.Lambda):
			params = self._params(node.args)
			body = self._scoped(
				[a.arg for a in node.args.args], lambda: self.emit_expr(node.body)
			)
			return Arrow(params, body)

		if isinstance(node, ast.Starred):
			return Spread(self.emit_expr(node.value))

		if isinstance(node, ast.Await):
			return Unary("await", self.emit_expr(node.value))

		raise self.error(f"Unsupported expression: {type(node).__name__}", node)

	def _emit_constant(self, node: ast.Constant) -> ExprNode:
		v = node.value
		if v is None or isinstance(v, (bool, int, float, str)):
			return Literal(v)
		raise self.error(f"Unsupported constant type: {type(v).__name__}", node)

	def _emit_name(self, node: ast.Name) -> ExprNode:
		name = node.id

		if name in self.locals:
			return Identifier(name)

		if name in self.deps:
			value = self.deps[name]
			if isinstance(value, Importable):
				self.build.use(value)
			return value

		if name in BUILTINS:
			return BUILTINS[name]

		if name in self.unresolved:
			raise self.error(f"Cannot use '{name}' here: {self.unresolved[name]}", node)
		raise self.error(f"Unbound name referenced: {name}", node)

	def _emit_dict(self, node: ast.Dict) -> ExprNode:
		"""Emit a dict literal as new Map([...])."""
		entries: list[ExprNode] = []
		for k, v in zip(node.keys, node.values, strict=True):
			if k is None:
				# {**other}: copy entries from a Map or a plain object
				other = self.emit_expr(v)
				is_map = Binary(other, "instanceof", Identifier("Map"))
				map_entries = Call(Member(other, "entries"), [])
				obj_entries = Call(Member(Identifier("Object"), "entries"), [other])
				entries.append(Spread(Ternary(is_map, map_entries, obj_entries)))
				continue
			entries.append(Array([self.emit_expr(k), self.emit_expr(v)]))
		return New(Identifier("Map"), [Array(entries)])

	def _emit_binop(self, node: ast.BinOp) -> ExprNode:
		left = self.emit_expr(node.left)
		right = self.emit_expr(node.right)
		if isinstance(node.op, ast.FloorDiv):
			return Call(Member(Identifier("Math"), "floor"), [Binary(left, "/", right)])
		op = type(node.op)
		if op not in ALLOWED_BINOPS:
			raise self.error(f"Unsupported binary operator: {op.__name__}", node)
		repeated = self._string_binop(
			node.op, self.shape_of(node.left), self.shape_of(node.right), left, right, node
		)
		if repeated is not None:
			return repeated
		return Binary(left, ALLOWED_BINOPS[op], right)

	def _string_binop(
		self,
		op: ast.operator,
		left_shapes: Shapes,
		right_shapes: Shapes,
		left: ExprNode,
		right: ExprNode,
		node: ast.AST,
	) -> ExprNode | None:
		"""String operators whose JS spelling differs from Python's.

		"ab" * 3 -> "ab".repeat(3). Returns None for plain arithmetic.
		"""
		if isinstance(op, ast.Mod) and STRING in left_shapes:
			raise self.error("%-formatting of strings is not supported, use an f-string", node)
		if isinstance(op, ast.Mult) and is_repeat(left_shapes, right_shapes):
			if left_shapes == {STRING}:
				return Call(Member(left, "repeat"), [right])
			return Call(Member(right, "repeat"), [left])
		return None

	def _emit_compare(self, node: ast.Compare) -> ExprNode:
		operands: list[ast.expr] = [node.left, *node.comparators]
		parts = [
			self._build_comparison(operands[i], op, operands[i + 1])
			for i, op in enumerate(node.ops)
		]
		result = parts[0]
		for part in parts[1:]:
			result = Binary(result, "&&", part)
		return result

	def _build_comparison(
		self, left: ast.expr, op: ast.cmpop, right: ast.expr
	) -> ExprNode:
		if isinstance(op, (ast.Is, ast.IsNot)):
			negate = isinstance(op, ast.IsNot)
			# x is None -> x == null (also matches undefined)
			if isinstance(right, ast.Constant) and right.value is None:
				return Binary(self.emit_expr(left), "!=" if negate else "==", Literal(None))
			if isinstance(left, ast.Constant) and left.value is None:
				return Binary(self.emit_expr(right), "!=" if negate else "==", Literal(None))
			return Binary(
				self.emit_expr(left), "!==" if negate else "===", self.emit_expr(right)
			)

		if isinstance(op, (ast.In, ast.NotIn)):
			test = self._membership(self.emit_expr(left), right)
			return Unary("!", test) if isinstance(op, ast.NotIn) else test

		op_type = type(op)
		if op_type not in ALLOWED_CMPOPS:
			raise self.error(f"Unsupported comparison operator: {op_type.__name__}", left)
		return Binary(self.emit_expr(left), ALLOWED_CMPOPS[op_type], self.emit_expr(right))

	def _membership(self, item: ExprNode, container_node: ast.expr) -> ExprNode:
		container = self.emit_expr(container_node)
		includes = Call(Member(container, "includes"), [item])
		has = Call(Member(container, "has"), [item])
		in_obj = Binary(item, "in", container)

		shapes = self.shape_of(container_node)
		if shapes and shapes <= {STRING, SEQ}:
			return includes
		if shapes and shapes <= {MAP, SET}:
			return has
		if shapes == {OBJECT}:
			return in_obj

		is_string = Binary(Unary("typeof", container), "===", Literal("string"))
		is_array = Call(Member(Identifier("Array"), "isArray"), [container])
		is_set = Binary(container, "instanceof", Identifier("Set"))
		is_map = Binary(container, "instanceof", Identifier("Map"))
		return Ternary(
			Binary(is_array, "||", is_string),
			includes,
			Ternary(Binary(is_set, "||", is_map), has, in_obj),
		)

	def _emit_call(self, node: ast.Call) -> ExprNode:
		args_raw = list(node.args)
		kwargs_raw: dict[str, Any] = {}
		for kw in node.keywords:
			if kw.arg is None:
				raise self.error("**kwargs in calls is not supported", node)
			kwargs_raw[kw.arg] = kw.value

		callee = self.emit_expr(node.func)

		# Macros, builtins and imports customize their own call
		if type(callee).emit_call is not ExprNode.emit_call:
			try:
				return callee.emit_call(args_raw, kwargs_raw, self)
			except TypeError as e:
				if not isinstance(callee, Transformer):
					raise
				raise self.error(f"Bad call to {callee.name}(): {e}", node) from None

		args = [self.emit_expr(a) for a in args_raw]
		kwargs = {k: self.emit_expr(v) for k, v in kwargs_raw.items()}

		if isinstance(node.func, ast.Attribute) and isinstance(callee, Member):
			method = node.func.attr
			shapes = self.shape_of(node.func.value)
			result = emit_method(callee.obj, method, args, kwargs, shapes)
			if result is not None:
				return result
			if kwargs:
				raise self.error(
					f"Keyword arguments are not supported for method '{method}'", node
				)
			return Call(callee, args)

		if kwargs:
			raise self.error("Keyword arguments are not supported in plain calls", node)
		return Call(callee, args)

	def _emit_subscript(self, node: ast.Subscript) -> ExprNode:
		value = self.emit_expr(node.value)

		if isinstance(node.slice, ast.Slice):
			return self._emit_slice(value, node.slice)

		if isinstance(node.slice, ast.Tuple):
			raise self.error("Multiple indices are not supported in subscripts", node)

		# xs[-1] -> xs.at(-1)
		if isinstance(node.slice, ast.UnaryOp) and isinstance(node.slice.op, ast.USub):
			return Call(Member(value, "at"), [Unary("-", self.emit_expr(node.slice.operand))])

		if self.shape_of(node.value) == {MAP}:
			return Call(Member(value, "get"), [self.emit_expr(node.slice)])

		return value.emit_subscript(node.slice, self)

	def _emit_slice(self, value: ExprNode, slc: ast.Slice) -> ExprNode:
		if slc.step is not None:
			raise self.error("Slice steps are not supported", slc)
		args: list[ExprNode] = []
		if slc.lower is not None or slc.upper is not None:
			args.append(Literal(0) if slc.lower is None else self.emit_expr(slc.lower))
		if slc.upper is not None:
			args.append(self.emit_expr(slc.upper))
		return Call(Member(value, "slice"), args)

	# --- f-strings -----------------------------------------------------------

	def _emit_fstring(self, node: ast.JoinedStr) -> ExprNode:
		"""f"..." -> `...` template literal."""
		parts: list[str | ExprNode] = []
		for part in node.values:
			if isinstance(part, ast.Constant) and isinstance(part.value, str):
				parts.append(part.value)
				continue
			if not isinstance(part, ast.FormattedValue):
				raise self.error(f"Unsupported f-string part: {type(part).__name__}", node)
			expr = self.emit_expr(part.value)
			if part.conversion == ord("s"):
				expr = Call(Identifier("String"), [expr])
			elif part.conversion in (ord("r"), ord("a")):
				expr = Call(Member(Identifier("JSON"), "stringify"), [expr])
			if part.format_spec is not None:
				expr = self._apply_format_spec(expr, part.format_spec)
			parts.append(expr)
		return Template(parts)

	_FORMAT_SPEC = re.compile(
		r"^(?:(?P<fill>.)?(?P<align>[<>^=]))?(?P<sign>[+\- ])?(?P<alt>#)?"
		r"(?P<zero>0)?(?P<width>\d+)?(?P<grouping>[,_])?(?:\.(?P<precision>\d+))?"
		r"(?P<type>[bcdeEfFgGnosxX%])?$"
	)

	def _apply_format_spec(self, expr: ExprNode, spec_node: ast.expr) -> ExprNode:
		if not (
			isinstance(spec_node, ast.JoinedStr)
			and len(spec_node.values) == 1
			and isinstance(spec_node.values[0], ast.Constant)
			and isinstance(spec_node.values[0].value, str)
		):
			raise self.error("Dynamic format specs are not supported", spec_node)
		spec = spec_node.values[0].value
		m = self._FORMAT_SPEC.match(spec)
		if m is None:
			raise self.error(f"Unsupported format spec: {spec!r}", spec_node)

		kind = m["type"] or ""
		precision = int(m["precision"]) if m["precision"] else None
		if kind in ("f", "F"):
			expr = Call(Member(expr, "toFixed"), [Literal(6 if precision is None else precision)])
		elif kind == "%":
			scaled = Binary(expr, "*", Literal(100))
			fixed = Call(Member(scaled, "toFixed"), [Literal(6 if precision is None else precision)])
			expr = Binary(fixed, "+", Literal("%"))
		elif kind in ("e", "E"):
			expr = Call(Member(expr, "toExponential"), [Literal(6 if precision is None else precision)])
			if kind == "E":
				expr = Call(Member(expr, "toUpperCase"), [])
		elif kind in ("x", "X", "o", "b"):
			radix = {"x": 16, "X": 16, "o": 8, "b": 2}[kind]
			expr = Call(Member(expr, "toString"), [Literal(radix)])
			if kind == "X":
				expr = Call(Member(expr, "toUpperCase"), [])
			if m["alt"]:
				expr = Binary(Literal("0" + kind.lower()), "+", expr)
		elif m["grouping"] == ",":
			expr = Call(Member(expr, "toLocaleString"), [Literal("en-US")])

		if m["sign"] == "+" and kind in ("f", "F", "d", "e", "E", "%"):
			expr = Ternary(Binary(expr, ">=", Literal(0)), Binary(Literal("+"), "+", expr), expr)

		if m["width"]:
			width = Literal(int(m["width"]))
			text = Call(Identifier("String"), [expr])
			if m["zero"] and not m["align"]:
				return Call(Member(text, "padStart"), [width, Literal("0")])
			fill = Literal(m["fill"] or " ")
			align = m["align"] or ("<" if kind in ("", "s") else ">")
			if align == "<":
				return Call(Member(text, "padEnd"), [width, fill])
			if align == "^":
				# Center: pad the left half, then the right
				half = Binary(
					Binary(Binary(width, "+", Member(text, "length")), "/", Literal(2)),
					"|",
					Literal(0),
				)
				left = Call(Member(text, "padStart"), [half, fill])
				return Call(Member(left, "padEnd"), [width, fill])
			return Call(Member(text, "padStart"), [width, fill])
		return expr

	# --- Comprehensions -------------------------------------------------------

	def _emit_comprehension_chain(
		self,
		generators: list[ast.comprehension],
		build_last: Callable[[], ExprNode],
	) -> ExprNode:
		"""[f(x, y) for x in xs if p(x) for y in ys] -> xs.filter(...).flatMap(x => ys.map(y => ...))"""

		def build_chain(i: int) -> ExprNode:
			gen = generators[i]
			if gen.is_async:
				raise self.error("Async comprehensions are not supported", gen.iter)
			iter_expr = self.emit_expr(gen.iter)
			names: list[str] = []
			param = self._pattern(gen.target, names)

			def inner() -> ExprNode:
				base = iter_expr
				if gen.ifs:
					conds = [self.emit_expr(test) for test in gen.ifs]
					cond = conds[0]
					for c in conds[1:]:
						cond = Binary(cond, "&&", c)
					base = Call(Member(base, "filter"), [Arrow([param], cond)])
				if i == len(generators) - 1:
					return Call(Member(base, "map"), [Arrow([param], build_last())])
				return Call(Member(base, "flatMap"), [Arrow([param], build_chain(i + 1))])

			return self._scoped(names, inner)

		return build_chain(0)


def transpile(
	fndef: ast.FunctionDef | ast.AsyncFunctionDef,
	deps: Mapping[str, ExprNode] | None = None,
	build: BuildContext | None = None,
) -> Function | Arrow:
	"""Transpile a Python function definition to a Function or Arrow node."""
	return Transpiler(fndef, deps or {}, build).transpile()
