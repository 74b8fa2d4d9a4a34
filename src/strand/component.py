"""The @component decorator and per-component code generation.

A component is a plain Python function. Its parameters are the binding
pattern for the props (and optionally the ref) React passes at render time:

	@component
	def Card(props): ...                       # whole props object

	@component
	def Card(props, ref): ...                  # props plus the forwarded ref

	@component(wrap=[memo])
	def Card(*, title, count=0, ref, **rest): ...   # destructured props

The first body statement may be an options dict literal, currently only
`{"wrap": [...]}`. The body itself is transpiled to JavaScript.
"""

from __future__ import annotations

import ast
import inspect
import logging
import textwrap
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, overload
from typing_extensions import override

from strand.context import BuildContext, local_src
from strand.deps import analyze_deps
from strand.element import build_element
from strand.errors import TranspileError
from strand.hooks import find_hooks
from strand.hot_reload import HOT_RELOAD_REGISTRY, RegistryEntry, Signature
from strand.imports import Import, Importable
from strand.inference import OBJECT, ElementSource, annotation_shapes, shapes
from strand.nodes import (
	Assign,
	Call,
	Comment,
	Export,
	ExprNode,
	ExprStmt,
	Function,
	FunctionDecl,
	Identifier,
	If,
	Literal,
	Member,
	StmtNode,
	Ternary,
	emit,
)
from strand.transpiler import Transpiler, is_docstring

logger = logging.getLogger(__name__)

PROPS_PARAM = "$props"
REF_PARAM = "$ref"
OPTION_KEYS = {"wrap"}

# Qualified name -> Component, in definition order
COMPONENTS: dict[str, Component] = {}


@dataclass(slots=True)
class Binding:
	"""How the render arguments are bound inside the body.

	Either `props` names the whole props object, or `fields` lists the
	destructured props as (name, default) with an optional `rest` name.
	"""

	props: str | None = None
	fields: list[tuple[str, ast.expr | None]] | None = None
	rest: str | None = None
	ref: str | None = None
	annotations: dict[str, ast.expr] | None = None

	def names(self) -> list[str]:
		names: list[str] = []
		if self.props is not None:
			names.append(self.props)
		for name, _ in self.fields or ():
			names.append(name)
		if self.rest is not None:
			names.append(self.rest)
		if self.ref is not None:
			names.append(self.ref)
		return names


def parse_binding(fndef: ast.FunctionDef | ast.AsyncFunctionDef) -> Binding:
	args = fndef.args
	name = fndef.name
	if args.posonlyargs or args.vararg:
		raise TranspileError(
			f"Component '{name}' cannot use positional-only or *args parameters"
		).at(fndef)
	if args.args and (args.kwonlyargs or args.kwarg):
		raise TranspileError(
			f"Component '{name}' must take either (props[, ref]) or keyword-only props, not both"
		).at(fndef)

	if args.args:
		if len(args.args) > 2:
			raise TranspileError(
				f"Component '{name}' takes at most two parameters (props, ref)"
			).at(fndef)
		if args.defaults:
			raise TranspileError(
				f"Component '{name}' parameters cannot have defaults"
			).at(fndef)
		ref = args.args[1].arg if len(args.args) == 2 else None
		return Binding(props=args.args[0].arg, ref=ref)

	if not args.kwonlyargs and args.kwarg is None:
		raise TranspileError(
			f"Component '{name}' must declare its props: def {name}(props) or def {name}(*, ...)"
		).at(fndef)

	fields: list[tuple[str, ast.expr | None]] = []
	annotations: dict[str, ast.expr] = {}
	ref: str | None = None
	for arg, default in zip(args.kwonlyargs, args.kw_defaults, strict=True):
		if arg.arg == "ref":
			if default is not None:
				raise TranspileError("The ref parameter cannot have a default").at(arg)
			ref = arg.arg
			continue
		fields.append((arg.arg, default))
		if arg.annotation is not None:
			annotations[arg.arg] = arg.annotation
	rest = args.kwarg.arg if args.kwarg is not None else None
	return Binding(fields=fields, rest=rest, ref=ref, annotations=annotations)


def split_options(
	body: list[ast.stmt],
) -> tuple[str | None, ast.Dict | None, list[ast.stmt]]:
	"""Split a body into (docstring, options literal, remaining statements)."""
	doc: str | None = None
	if body and is_docstring(body[0]):
		doc = body[0].value.value  # pyright: ignore[reportAttributeAccessIssue]
		body = body[1:]
	if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Dict):
		return doc, body[0].value, body[1:]
	return doc, None, body


def parse_options(node: ast.Dict) -> dict[str, ast.expr]:
	options: dict[str, ast.expr] = {}
	for key, value in zip(node.keys, node.values, strict=True):
		if not (isinstance(key, ast.Constant) and isinstance(key.value, str)):
			raise TranspileError("Component options must use string keys").at(node)
		if key.value not in OPTION_KEYS:
			raise TranspileError(f"Unknown component option '{key.value}'").at(key)
		options[key.value] = value
	return options


def load_fndef(fn: Callable[..., Any]) -> ast.FunctionDef | ast.AsyncFunctionDef:
	"""Parse the source of `fn`, keeping the file's line numbers."""
	try:
		source = inspect.getsource(fn)
		_, firstlineno = inspect.getsourcelines(fn)
	except (OSError, TypeError) as e:
		raise TranspileError(
			f"Cannot read the source of '{fn.__qualname__}': {e}", module=fn.__module__
		) from None
	tree = ast.parse(textwrap.dedent(source))
	ast.increment_lineno(tree, firstlineno - 1)
	for node in tree.body:
		if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == fn.__name__:
			return node
	raise TranspileError(
		f"No definition of '{fn.__name__}' found in its source", module=fn.__module__
	)


@dataclass(slots=True)
class CompiledComponent:
	"""Generated code for one component.

	`signature` is the module-level signature declaration (debug builds only).
	"""

	component: Component
	statements: list[StmtNode]
	signature: StmtNode | None
	hooks: list[str]


class Component(Importable, ElementSource):
	"""A Python function compiled to an exported React component.

	Inside other component bodies it emits its exported name, is imported
	from its own module's output when used elsewhere, and calling it is the
	same request as `h(Component, ...)`.
	"""

	fn: Callable[..., Any]
	name: str
	module: str
	wrap: list[Any]

	def __init__(self, fn: Callable[..., Any], wrap: Sequence[Any] | None = None) -> None:
		self.fn = fn
		self.name = fn.__name__
		self.module = fn.__module__
		self.wrap = list(wrap) if wrap is not None else []
		self.signature = Signature(self.qualified_name, f"{self.name}_sig")
		self.__doc__ = fn.__doc__
		self.__name__ = fn.__name__
		self.__qualname__ = fn.__qualname__
		self.__module__ = fn.__module__
		self.__wrapped__ = fn

	@property
	def qualified_name(self) -> str:
		return f"{self.module}:{self.name}"

	@property
	def render_name(self) -> str:
		return f"{self.name}_render"

	@override
	def as_import(self) -> Import:
		return Import(self.name, local_src(self.module))

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.name)

	@override
	def emit_call(
		self,
		args: list[Any],
		kwargs: dict[str, Any],
		ctx: Transpiler,
	) -> ExprNode:
		if kwargs:
			raise TranspileError(
				f"{self.name}() does not accept keyword arguments; pass props as a dict literal"
			)
		ctx.build.use(self)
		return build_element(self, args, ctx, False, self.name)

	def __call__(self, *args: Any, **kwargs: Any) -> Any:
		raise TypeError(
			f"Component '{self.name}' is compiled to JavaScript and cannot be called from Python"
		)

	@override
	def __repr__(self) -> str:
		return f"Component({self.qualified_name})"

	# --- Code generation ------------------------------------------------------

	def compile(self, build: BuildContext) -> CompiledComponent:
		"""Generate the render function, export and debug registration."""
		try:
			return self._compile(build)
		except TranspileError as e:
			raise e.at(None, self.module) from None

	def _compile(self, build: BuildContext) -> CompiledComponent:
		options = build.options
		fndef = load_fndef(self.fn)
		deps, unresolved = analyze_deps(self.fn)
		binding = parse_binding(fndef)
		doc, options_node, body = split_options(fndef.body)
		literal_options = parse_options(options_node) if options_node is not None else {}
		if "wrap" in literal_options and self.wrap:
			raise TranspileError(
				f"Component '{self.name}' sets wrap both in the decorator and in its options",
				module=self.module,
			).at(options_node)

		t = Transpiler(fndef, deps, build, unresolved=unresolved)
		t.args = []
		t.locals = set(binding.names())
		t.types = {}
		self._bind_types(t, binding)

		hooks = find_hooks(body)
		sig = Identifier(self.signature.binding)
		guard = Identifier(options.debug_guard) if options.debug_guard else None

		stmts: list[StmtNode] = []
		if options.debug:
			check: StmtNode = If(sig, [ExprStmt(Call(sig, []))])
			stmts.append(If(guard, [check]) if guard else check)
		stmts.extend(self._bind_params(t, binding))
		stmts.extend(t.emit_body(body))
		render = Function([PROPS_PARAM, REF_PARAM], stmts, name=self.render_name)

		wrapped: ExprNode = Identifier(self.render_name)
		for w in self._wraps(t, literal_options.get("wrap")):
			wrapped = Call(w, [wrapped])

		out: list[StmtNode] = [FunctionDecl(render)]
		export: StmtNode = Export(Assign(self.name, wrapped, declare="const"))
		if doc:
			out.append(Comment(inspect.cleandoc(doc)))
		out.append(export)

		declaration: StmtNode | None = None
		if options.debug:
			create = build.use(build.runtime.createSignature)
			register = build.use(build.runtime.register)
			created: ExprNode = Call(create, [])
			if guard:
				created = Ternary(guard, created, Literal(None))
			declaration = Assign(self.signature.binding, created, declare="const")

			public = Identifier(self.name)
			fingerprint = "".join(hooks)
			debug_stmts: list[StmtNode] = [
				Assign(Member(public, "displayName"), Literal(self.qualified_name)),
				ExprStmt(Call(sig, [public, Literal(fingerprint), Literal(None), Literal(None)])),
				ExprStmt(Call(register, [public, Literal(self.qualified_name)])),
			]
			if guard:
				out.append(If(guard, debug_stmts))
			else:
				out.extend(debug_stmts)

			if not self.signature.populated:
				self.signature.populate(hooks)
			HOT_RELOAD_REGISTRY.register(
				self.qualified_name, RegistryEntry(self, self.signature)
			)

		logger.debug(
			"Compiled component %s (%d hooks, debug=%s)",
			self.qualified_name,
			len(hooks),
			options.debug,
		)
		return CompiledComponent(self, out, declaration, hooks)

	def _bind_types(self, t: Transpiler, binding: Binding) -> None:
		if binding.props is not None:
			t.types[binding.props] = shapes(OBJECT)
		for name, expr in (binding.annotations or {}).items():
			t.types[name] = annotation_shapes(expr, t)
		if binding.rest is not None:
			t.types[binding.rest] = shapes(OBJECT)

	def _bind_params(self, t: Transpiler, binding: Binding) -> list[StmtNode]:
		extract = t.build.use(t.build.runtime.extractProps)
		props = Call(extract, [Identifier(PROPS_PARAM)])
		stmts: list[StmtNode] = []
		if binding.props is not None:
			stmts.append(Assign(binding.props, props, declare="let"))
		elif binding.fields or binding.rest:
			parts: list[str] = []
			for name, default in binding.fields or ():
				if default is None:
					parts.append(name)
				else:
					parts.append(f"{name} = {emit(t.emit_expr(default))}")
			if binding.rest is not None:
				parts.append(f"...{binding.rest}")
			stmts.append(Assign("{" + ", ".join(parts) + "}", props, declare="let"))
		if binding.ref is not None:
			stmts.append(Assign(binding.ref, Identifier(REF_PARAM), declare="let"))
		return stmts

	def _wraps(self, t: Transpiler, literal: ast.expr | None) -> list[ExprNode]:
		if literal is not None:
			if not isinstance(literal, (ast.List, ast.Tuple)):
				raise TranspileError("The wrap option must be a list literal").at(
					literal, self.module
				)
			return [t.emit_expr(e) for e in literal.elts]
		wraps: list[ExprNode] = []
		for value in self.wrap:
			try:
				expr = ExprNode.of(value)
			except TypeError:
				raise TranspileError(
					f"Cannot use {value!r} as a wrapper of component '{self.name}'",
					module=self.module,
				) from None
			if isinstance(expr, Importable):
				t.build.use(expr)
			wraps.append(expr)
		return wraps


@overload
def component(fn: Callable[..., Any], /) -> Component: ...


@overload
def component(
	*, wrap: Sequence[Any] | None = None
) -> Callable[[Callable[..., Any]], Component]: ...


def component(
	fn: Callable[..., Any] | None = None,
	/,
	*,
	wrap: Sequence[Any] | None = None,
) -> Component | Callable[[Callable[..., Any]], Component]:
	"""Declare a React component written in Python.

	`wrap` lists higher-order components applied to the render function, left
	to right: wrap=[a, b] exports b(a(render)).
	"""

	def decorator(f: Callable[..., Any]) -> Component:
		comp = Component(f, wrap)
		# Redefinition (hot reload) replaces the previous entry
		COMPONENTS[comp.qualified_name] = comp
		return comp

	if fn is not None:
		return decorator(fn)
	return decorator


def module_components(module: str) -> list[Component]:
	"""Components defined in `module`, in definition order."""
	return [c for c in COMPONENTS.values() if c.module == module]


__all__ = [
	"COMPONENTS",
	"CompiledComponent",
	"Component",
	"component",
	"module_components",
]
