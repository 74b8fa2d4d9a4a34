from __future__ import annotations

import ast
from typing_extensions import override


class TranspileError(Exception):
	"""Error raised for Python constructs that cannot be compiled to JavaScript.

	Optionally carries the source location (module and line) of the offending
	node. `str()` of the error includes the location when it is known.
	"""

	message: str
	lineno: int | None
	module: str | None

	def __init__(
		self,
		message: str,
		*,
		lineno: int | None = None,
		module: str | None = None,
	) -> None:
		super().__init__(message)
		self.message = message
		self.lineno = lineno
		self.module = module

	def at(self, node: ast.AST | None, module: str | None = None) -> TranspileError:
		"""Fill in missing location info from an AST node. Returns self."""
		if self.lineno is None and node is not None:
			self.lineno = getattr(node, "lineno", None)
		if self.module is None:
			self.module = module
		return self

	@override
	def __str__(self) -> str:
		if self.module and self.lineno is not None:
			return f"{self.module}:{self.lineno}: {self.message}"
		if self.module:
			return f"{self.module}: {self.message}"
		if self.lineno is not None:
			return f"line {self.lineno}: {self.message}"
		return self.message
