import pytest
from strand.errors import TranspileError
from strand.imports import Import, render_imports
from strand.nodes import (
	Array,
	Arrow,
	Assign,
	Binary,
	Call,
	Comment,
	Declare,
	Export,
	ExprNode,
	ForOf,
	Function,
	FunctionDecl,
	Identifier,
	If,
	Literal,
	Member,
	Object,
	Return,
	Spread,
	Template,
	Ternary,
	Unary,
	emit,
)

a, b, c = Identifier("a"), Identifier("b"), Identifier("c")


class TestLiterals:
	@pytest.mark.parametrize(
		"value,expected",
		[
			(None, "null"),
			(True, "true"),
			(False, "false"),
			(3, "3"),
			(1.5, "1.5"),
			('a "b"\n', '"a \\"b\\"\\n"'),
		],
	)
	def test_literal(self, value: object, expected: str):
		assert emit(Literal(value)) == expected  # pyright: ignore[reportArgumentType]

	def test_line_separators_escaped(self):
		assert emit(Literal("a\u2028b\u2029 c")) == '"a\\u2028b\\u2029 c"'

	def test_template_escapes(self):
		assert emit(Template(["cost: $", a, "`${x}`"])) == "`cost: $${a}\\`\\${x}\\``"

	def test_object_keys(self):
		obj = Object([("className", a), (b, Literal(1))])
		assert emit(obj) == '{"className": a, [b]: 1}'


class TestPrecedence:
	def test_parens_only_where_needed(self):
		expr = Binary(Binary(a, "+", b), "*", Binary(c, "*", a))
		assert emit(expr) == "(a + b) * (c * a)"

	def test_member_of_binary(self):
		assert emit(Member(Binary(a, "||", b), "length")) == "(a || b).length"

	def test_call_of_arrow(self):
		assert emit(Call(Arrow([], a), [])) == "(() => a)()"

	def test_ternary_in_binary(self):
		assert emit(Binary(Ternary(a, b, c), "+", a)) == "(a ? b : c) + a"

	def test_unary_of_binary(self):
		assert emit(Unary("!", Binary(a, "&&", b))) == "!(a && b)"

	def test_arrow_object_body(self):
		assert emit(Arrow(["x"], Object([("k", Identifier("x"))]))) == 'x => ({"k": x})'

	def test_spread_in_array(self):
		assert emit(Array([Spread(a), b])) == "[...a, b]"

	def test_keyword_and_sign_operators(self):
		assert emit(Unary("typeof", a)) == "typeof a"
		assert emit(Unary("-", Unary("-", a))) == "-(-a)"
		assert emit(Binary(Unary("-", a), "**", b)) == "(-a) ** b"
		assert emit(Binary(a, "**", Binary(b, "**", c))) == "a ** b ** c"
		assert emit(Binary(a, "-", Binary(b, "-", c))) == "a - (b - c)"


class TestStatements:
	def test_function_declaration(self):
		fn = Function(["$props", "$ref"], [Return(a)], name="Card_render")
		assert emit(FunctionDecl(fn)) == "function Card_render($props, $ref) {\nreturn a;\n}"

	def test_anonymous_declaration_rejected(self):
		with pytest.raises(ValueError, match="require a name"):
			emit(FunctionDecl(Function([], [])))

	def test_export_const(self):
		assert emit(Export(Assign("Card", a, declare="const"))) == "export const Card = a;"

	def test_if_else(self):
		stmt = If(a, [Assign("x", b)], [Assign("x", c)])
		assert emit(stmt) == "if (a) {\nx = b;\n} else {\nx = c;\n}"

	def test_nested_blocks(self):
		loop = ForOf("[k, v]", a, [If(b, [Return()])])
		assert emit(Function([], [loop])) == (
			"function() {\nfor (const [k, v] of a) {\nif (b) {\nreturn;\n}\n}\n}"
		)

	def test_declare(self):
		assert emit(Declare(["x", "y"])) == "let x, y;"

	def test_single_line_comment(self):
		assert emit(Comment("Shows a card.")) == "/** Shows a card. */"

	def test_multi_line_comment(self):
		text = "Shows a card.\n\nClose with */ escape."
		assert emit(Comment(text)) == (
			"/**\n * Shows a card.\n *\n * Close with *\\/ escape.\n */"
		)


class TestExprNodeOf:
	def test_primitives_and_collections(self):
		assert emit(ExprNode.of(["a", 1, None])) == '["a", 1, null]'
		assert emit(ExprNode.of({"k": True})) == 'new Map([["k", true]])'

	def test_registered_value(self):
		sentinel = object()
		ExprNode.register(sentinel, Identifier("window"))
		assert ExprNode.of(sentinel) == Identifier("window")

	def test_unconvertible(self):
		with pytest.raises(TypeError, match="Cannot convert object"):
			ExprNode.of(object())


class TestRenderImports:
	def test_grouped_by_source_in_first_use_order(self):
		imports = [
			Import("createElement", "react"),
			Import("mergeProps", "@strand/runtime"),
			Import("React", "react", is_default=True),
			Import("Fragment", "react"),
			Import("createElement", "react"),
		]
		assert render_imports(imports) == [
			'import React, { createElement, Fragment } from "react";',
			'import { mergeProps } from "@strand/runtime";',
		]

	def test_conflicting_defaults(self):
		imports = [Import("A", "lib", is_default=True), Import("B", "lib", is_default=True)]
		with pytest.raises(TranspileError, match="Conflicting default imports"):
			render_imports(imports)
