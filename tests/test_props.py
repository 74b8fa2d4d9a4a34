import ast

import pytest
from strand.nodes import Literal, emit
from strand.props import (
	PropEntry,
	build_object,
	build_props,
	default_kv_to_prop,
	has_spread,
	literal_entries,
	prop_name,
	spread_value,
)
from strand.transpiler import Transpiler


@pytest.fixture
def ctx() -> Transpiler:
	fndef = ast.parse("def f(k, rest, v):\n\tpass").body[0]
	assert isinstance(fndef, ast.FunctionDef)
	return Transpiler(fndef, {})


def dict_literal(src: str) -> ast.Dict:
	node = ast.parse(src, mode="eval").body
	assert isinstance(node, ast.Dict)
	return node


def key(src: str) -> ast.expr:
	return ast.parse(src, mode="eval").body


class TestPropName:
	def test_string_key_verbatim(self, ctx: Transpiler):
		assert prop_name(key("'on-click'"), ctx) == "on-click"

	@pytest.mark.parametrize("src,expected", [("1", "1"), ("2.5", "2.5"), ("True", "true"), ("None", "null")])
	def test_other_constants(self, ctx: Transpiler, src: str, expected: str):
		assert prop_name(key(src), ctx) == expected

	def test_computed_key(self, ctx: Transpiler):
		name = prop_name(key("k"), ctx)
		assert not isinstance(name, str)
		assert emit(name) == "k"


class TestBuildObject:
	def test_entries_can_expand(self, ctx: Transpiler):
		def doubled(k: ast.expr, v: ast.expr, ctx: Transpiler) -> list[PropEntry]:
			name = prop_name(k, ctx)
			assert isinstance(name, str)
			if name == "skip":
				return []
			value = ctx.emit_expr(v)
			return [(name, value), (f"{name}2", value)]

		node = dict_literal("{'a': 1, 'skip': 2, 'b': v}")
		obj = build_object(literal_entries(node), doubled, ctx)
		assert emit(obj) == '{"a": 1, "a2": 1, "b": v, "b2": v}'

	def test_duplicate_keys_keep_order(self, ctx: Transpiler):
		node = dict_literal("{'a': 1, 'a': 2}")
		obj = build_object(literal_entries(node), default_kv_to_prop, ctx)
		assert emit(obj) == '{"a": 1, "a": 2}'


class TestBuildProps:
	def test_static(self, ctx: Transpiler):
		props = build_props(dict_literal("{'class': 'x', 'data-id': 1}"), ctx, native=True)
		assert emit(props) == '{"className": "x", "data-id": 1}'
		assert ctx.build.used_imports() == []

	def test_with_spread(self, ctx: Transpiler):
		props = build_props(dict_literal("{'a': 1, **rest}"), ctx, native=False)
		assert emit(props) == 'mergeProps({"a": 1}, rest)'
		assert [i.name for i in ctx.build.used_imports()] == ["mergeProps"]

	def test_only_spread(self, ctx: Transpiler):
		props = build_props(dict_literal("{**rest}"), ctx, native=True)
		assert emit(props) == "mergeProps({}, rest)"

	def test_style_with_spread_is_converted_at_runtime(self, ctx: Transpiler):
		props = build_props(dict_literal("{'style': {'font-size': 1, **rest}}"), ctx, native=True)
		assert emit(props).startswith('{"style": toJs(new Map([["font-size", 1], ...rest instanceof Map ? ')


class TestHelpers:
	def test_spread_detection(self):
		node = dict_literal("{'a': 1, **rest}")
		assert has_spread(node)
		spread = spread_value(node)
		assert isinstance(spread, ast.Name) and spread.id == "rest"
		assert [emit(Literal(k.value)) for k, _ in literal_entries(node) if isinstance(k, ast.Constant)] == ['"a"']

	def test_no_spread(self):
		node = dict_literal("{'a': 1}")
		assert not has_spread(node)
		assert spread_value(node) is None
