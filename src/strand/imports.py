"""JS imports referenced by compiled code."""

from __future__ import annotations

import ast
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing_extensions import override

from strand.errors import TranspileError
from strand.nodes import Call, ExprNode, Member

if TYPE_CHECKING:
	from strand.transpiler import Transpiler


class Importable(ExprNode, ABC):
	"""An expression whose use requires an import statement in the output."""

	__slots__: tuple[str, ...] = ()

	@abstractmethod
	def as_import(self) -> Import: ...


@dataclass(slots=True, frozen=True)
class Import(Importable):
	"""A JS binding imported from another module.

	Examples:
		# import { memo } from "react"
		memo = Import("memo", "react")

		# import React from "react"
		React = Import("React", "react", is_default=True)

	Python code can bind an Import to a module-level name and use it inside a
	component body. The transpiler records every Import that a component uses
	so the generated module imports it.
	"""

	name: str
	src: str
	is_default: bool = False

	@property
	def key(self) -> tuple[str, str, bool]:
		return (self.name, self.src, self.is_default)

	@override
	def as_import(self) -> Import:
		return self

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.name)

	@override
	def emit_call(
		self,
		args: list[ast.expr],
		kwargs: dict[str, ast.expr],
		ctx: Transpiler,
	) -> ExprNode:
		if kwargs:
			raise TranspileError(
				f"Keyword arguments are not supported when calling '{self.name}'"
			)
		return Call(self, [ctx.emit_expr(a) for a in args])

	@override
	def emit_getattr(self, attr: str, ctx: Transpiler) -> ExprNode:
		return Member(self, attr)


def render_imports(imports: list[Import]) -> list[str]:
	"""Render import statements, grouped by source in first-use order.

	Default and named imports from the same source share one statement:
		import React, { useState, useEffect } from "react";
	"""
	by_src: dict[str, tuple[list[str], list[str]]] = {}
	for imp in imports:
		defaults, named = by_src.setdefault(imp.src, ([], []))
		bucket = defaults if imp.is_default else named
		if imp.name not in bucket:
			bucket.append(imp.name)

	lines: list[str] = []
	for src, (defaults, named) in by_src.items():
		parts: list[str] = []
		if defaults:
			if len(defaults) > 1:
				raise TranspileError(
					f"Conflicting default imports from '{src}': {', '.join(defaults)}"
				)
			parts.append(defaults[0])
		if named:
			parts.append("{ " + ", ".join(named) + " }")
		lines.append(f'import {", ".join(parts)} from "{src}";')
	return lines
