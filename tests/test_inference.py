"""Tests for static shape inference and element-argument classification."""

import ast
import textwrap

import pytest
from strand import dom
from strand.element import fragment, h
from strand.inference import (
	BOOLEAN,
	ELEMENT,
	MAP,
	NULL,
	NUMBER,
	OBJECT,
	SEQ,
	STRING,
	UNKNOWN,
	Classified,
	Kind,
	annotation_shapes,
	classify,
	infer,
	shapes,
	union,
)
from strand.nodes import ExprNode, Transformer
from strand.transpiler import Transpiler

SIGNATURE = (
	"def f(s: str, n: int, maybe: int | None, items: list[str], el: 'Element', "
	"d: dict, flag: bool, anything):\n\tpass"
)

CONFIG = {"theme": "dark"}


@pytest.fixture
def ctx() -> Transpiler:
	fndef = ast.parse(SIGNATURE).body[0]
	assert isinstance(fndef, ast.FunctionDef)
	deps: dict[str, ExprNode] = {
		"h": h,
		"fragment": fragment,
		"dom": ExprNode.of(dom),
		"TITLE": ExprNode.of("Welcome"),
		"LIMIT": ExprNode.of(10),
		"CONFIG": ExprNode.of(CONFIG),
	}
	return Transpiler(fndef, deps)


def expr(src: str) -> ast.expr:
	return ast.parse(src, mode="eval").body


class TestInfer:
	@pytest.mark.parametrize(
		"src,expected",
		[
			("'x'", shapes(STRING)),
			("1.5", shapes(NUMBER)),
			("None", shapes(NULL)),
			("True", shapes(BOOLEAN)),
			("f'{n}'", shapes(STRING)),
			("s", shapes(STRING)),
			("maybe", shapes(NUMBER, NULL)),
			("n + 1", shapes(NUMBER)),
			("s + '!'", shapes(STRING)),
			("'-' * n", shapes(STRING)),
			("n // 2", shapes(NUMBER)),
			("-n", shapes(NUMBER)),
			("not anything", shapes(BOOLEAN)),
			("n < 3", shapes(BOOLEAN)),
			("s if flag else n", shapes(STRING, NUMBER)),
			("s or 'default'", shapes(STRING)),
			("[1, 2]", shapes(SEQ)),
			("(s, n)", shapes(SEQ)),
			("[x for x in items]", shapes(SEQ)),
			("{'a': 1}", shapes(MAP)),
			("len(items)", shapes(NUMBER)),
			("str(anything)", shapes(STRING)),
			("sorted(items)", shapes(SEQ)),
			("s.upper()", shapes(STRING)),
			("s.split(',')", shapes(SEQ)),
			("s.startswith('a')", shapes(BOOLEAN)),
			("d.keys()", shapes(SEQ)),
			("h('div')", shapes(ELEMENT)),
			("fragment()", shapes(ELEMENT)),
			("dom.span('x')", shapes(ELEMENT)),
			("el", shapes(ELEMENT)),
			("TITLE", shapes(STRING)),
			("LIMIT", shapes(NUMBER)),
			("CONFIG", shapes(MAP)),
		],
	)
	def test_known(self, ctx: Transpiler, src: str, expected: frozenset[str]):
		assert infer(expr(src), ctx) == expected

	@pytest.mark.parametrize(
		"src",
		[
			"anything",
			"anything + 1",
			"s if flag else anything",
			"anything.upper()",
			"unknown_global",
			"items[0]",
			"s % n",
			"s * s",
			"maybe * s",
		],
	)
	def test_unknown(self, ctx: Transpiler, src: str):
		assert infer(expr(src), ctx) == UNKNOWN

	def test_rebound_in_loop_is_unknown(self, ctx: Transpiler):
		ctx.bind("s", shapes(STRING))
		ctx.forget({"s"})
		ctx.bind("s", shapes(STRING))
		assert infer(expr("s"), ctx) == UNKNOWN

	def test_rebinding_unions(self, ctx: Transpiler):
		ctx.locals.add("v")
		ctx.bind("v", shapes(STRING))
		ctx.bind("v", shapes(NUMBER))
		assert infer(expr("v"), ctx) == shapes(STRING, NUMBER)


def shapes_seen(code: str) -> list[frozenset[str]]:
	"""Compile `code` and collect the inferred shape of every `seen(x)` argument."""
	seen: list[frozenset[str]] = []

	def record(value: ast.expr, *, ctx: Transpiler) -> ExprNode:
		seen.append(infer(value, ctx))
		return ctx.emit_expr(value)

	fndef = ast.parse(textwrap.dedent(code)).body[0]
	assert isinstance(fndef, ast.FunctionDef)
	Transpiler(fndef, {"seen": Transformer(record, name="seen")}).transpile()
	return seen


class TestNestedScopes:
	def test_capture_assigned_once_before(self):
		code = """
		def f(props):
			content = 'Loading'
			def row():
				return seen(content)
			return row()
		"""
		assert shapes_seen(code) == [shapes(STRING)]

	def test_def_capture_rebound_after(self):
		code = """
		def f(props):
			content = 'Loading'
			def row():
				return seen(content)
			content = props
			return row()
		"""
		assert shapes_seen(code) == [UNKNOWN]

	def test_lambda_capture_rebound_in_branch(self):
		code = """
		def f(props):
			label = 'Hi'
			show = lambda: seen(label)
			if props.loud:
				label = props.text
			return show()
		"""
		assert shapes_seen(code) == [UNKNOWN]

	def test_lambda_capture_stable(self):
		code = """
		def f(props):
			label = 'Hi'
			show = lambda: seen(label)
			return show()
		"""
		assert shapes_seen(code) == [shapes(STRING)]

	def test_capture_rebound_in_enclosing_loop(self):
		code = """
		def f(items):
			label = 'x'
			for item in items:
				cb = lambda: seen(label)
				label = item
			return label
		"""
		assert shapes_seen(code) == [UNKNOWN]

	def test_outer_code_keeps_its_shapes(self):
		code = """
		def f(props):
			content = 'Loading'
			seen(content)
			def row():
				return seen(content)
			content = 'Done'
			return row()
		"""
		assert shapes_seen(code) == [shapes(STRING), UNKNOWN]

	def test_own_local_shadows_capture(self):
		code = """
		def f(props):
			value = props
			def row():
				value = 3
				return seen(value)
			return row()
		"""
		assert shapes_seen(code) == [shapes(NUMBER)]


class TestUnion:
	def test_union_of_known(self):
		assert union(shapes(STRING), shapes(NULL)) == shapes(STRING, NULL)

	def test_unknown_absorbs(self):
		assert union(shapes(STRING), UNKNOWN) == UNKNOWN
		assert union() == UNKNOWN


class TestAnnotations:
	@pytest.mark.parametrize(
		"src,expected",
		[
			("str", shapes(STRING)),
			("Optional[str]", shapes(STRING, NULL)),
			("Union[int, float, None]", shapes(NUMBER, NULL)),
			("str | None", shapes(STRING, NULL)),
			("'int | None'", shapes(NUMBER, NULL)),
			("Literal['a', 'b']", shapes(STRING)),
			("Annotated[int, 'meta']", shapes(NUMBER)),
			("list[str]", shapes(SEQ)),
			("Sequence[int]", shapes(SEQ)),
			("typing.Mapping[str, int]", shapes(MAP)),
			("Element", shapes(ELEMENT)),
		],
	)
	def test_known(self, src: str, expected: frozenset[str]):
		assert annotation_shapes(expr(src)) == expected

	@pytest.mark.parametrize("src", ["Any", "MyProps", "str | Any", "'not valid ('"])
	def test_unknown(self, src: str):
		assert annotation_shapes(expr(src)) == UNKNOWN


class TestClassify:
	def test_absent_and_none(self, ctx: Transpiler):
		assert classify(None, ctx, native=True).kind is Kind.NIL_CHILD
		assert classify(expr("None"), ctx, native=True).kind is Kind.NIL_CHILD

	def test_dict_literal_split_by_native(self, ctx: Transpiler):
		assert classify(expr("{'a': 1}"), ctx, native=True).kind is Kind.NATIVE_PROPS_MAP
		assert classify(expr("{'a': 1}"), ctx, native=False).kind is Kind.GENERIC_PROPS_MAP
		assert classify(expr("{**d}"), ctx, native=True).kind is Kind.NATIVE_PROPS_MAP

	def test_two_spreads_are_unknown(self, ctx: Transpiler):
		result = classify(expr("{**d, **d}"), ctx, native=True)
		assert result.kind is Kind.UNKNOWN
		assert not result.is_mapping
		assert result.describe_types() == "a dict literal with more than one ** spread"

	@pytest.mark.parametrize("src", ["'text'", "3", "2.5", "False"])
	def test_primitive_literals(self, ctx: Transpiler, src: str):
		assert classify(expr(src), ctx, native=True).kind is Kind.PRIMITIVE_CHILD

	@pytest.mark.parametrize("src", ["s", "maybe", "items", "el", "f'{n}'", "[x for x in items]"])
	def test_inferred_primitive(self, ctx: Transpiler, src: str):
		assert classify(expr(src), ctx, native=False).kind is Kind.INFERRED_PRIMITIVE

	@pytest.mark.parametrize("src", ["h('div')", "fragment()", "dom.p()"])
	def test_inferred_element(self, ctx: Transpiler, src: str):
		result = classify(expr(src), ctx, native=True)
		assert result == Classified(Kind.INFERRED_ELEMENT, shapes(ELEMENT))

	def test_unknown(self, ctx: Transpiler):
		result = classify(expr("anything"), ctx, native=True)
		assert result.kind is Kind.UNKNOWN
		assert result.describe_types() == "unknown"

	def test_boolean_is_unknown(self, ctx: Transpiler):
		result = classify(expr("flag"), ctx, native=True)
		assert result.kind is Kind.UNKNOWN
		assert result.describe_types() == "boolean"

	def test_mapping_is_flagged(self, ctx: Transpiler):
		result = classify(expr("d"), ctx, native=True)
		assert result.kind is Kind.UNKNOWN
		assert result.is_mapping

	def test_object_is_a_mapping(self):
		assert Classified(Kind.UNKNOWN, shapes(OBJECT)).is_mapping
		assert not Classified(Kind.UNKNOWN, shapes(OBJECT, STRING)).is_mapping

	def test_starred_is_unknown(self, ctx: Transpiler):
		assert classify(expr("(*items,)").elts[0], ctx, native=True).kind is Kind.UNKNOWN  # pyright: ignore[reportAttributeAccessIssue]
