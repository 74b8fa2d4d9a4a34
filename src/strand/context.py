"""Per-build state shared by the transpiler and the macros."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeVar

from strand.config import CompileOptions
from strand.imports import Import, Importable
from strand.runtime import Runtime

_I = TypeVar("_I", bound=Importable)


@dataclass(frozen=True, slots=True)
class Diagnostic:
	"""A missed optimization found while compiling."""

	module: str
	lineno: int | None
	message: str
	preview: str = ""

	@property
	def location(self) -> str:
		if self.lineno is None:
			return self.module
		return f"{self.module}:{self.lineno}"

	def format(self) -> str:
		text = f"{self.location} {self.message}"
		if self.preview:
			text += f"\n  {self.preview}"
		return text


@dataclass(slots=True)
class BuildContext:
	"""Collects imports and diagnostics while compiling one JS module.

	`module` is the Python module being compiled. Imports pointing back at
	this module (same-module component references) are dropped on render.
	"""

	module: str
	options: CompileOptions = field(default_factory=CompileOptions)
	runtime: Runtime = field(init=False)
	imports: dict[tuple[str, str, bool], Import] = field(default_factory=dict)
	diagnostics: list[Diagnostic] = field(default_factory=list)

	def __post_init__(self) -> None:
		self.runtime = Runtime(self.options)

	def use(self, expr: _I) -> _I:
		"""Record that the generated code references `expr`. Returns it."""
		imp = expr.as_import()
		if imp.src != local_src(self.module):
			self.imports.setdefault(imp.key, imp)
		return expr

	def report(self, diagnostic: Diagnostic) -> None:
		self.diagnostics.append(diagnostic)

	def used_imports(self) -> list[Import]:
		return list(self.imports.values())


def local_src(module: str) -> str:
	"""Relative import path of the JS module compiled from `module`."""
	return f"./{module}"
