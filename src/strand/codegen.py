"""Rendering compiled components into JavaScript modules."""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType

from mako.template import Template

from strand.component import CompiledComponent, Component, module_components
from strand.config import CompileOptions
from strand.context import BuildContext, Diagnostic
from strand.imports import render_imports
from strand.nodes import emit

logger = logging.getLogger(__name__)

MODULE_TEMPLATE = Template(
	"""// Generated by strand from ${module}. Do not edit.
% for line in imports:
${line}
% endfor
% if signatures:

% for sig in signatures:
${sig}
% endfor
% endif
% for block in components:

${block}
% endfor
"""
)


@dataclass(slots=True)
class CompiledModule:
	"""A generated JavaScript module with its build diagnostics."""

	module: str
	code: str
	diagnostics: list[Diagnostic] = field(default_factory=list)
	components: list[Component] = field(default_factory=list)

	@property
	def filename(self) -> str:
		return f"{self.module}.js"

	def write(self, path: Path | str) -> bool:
		"""Write the code to `path` (a file, or a directory for `<module>.js`).

		Returns False when the file already had this exact content.
		"""
		path = Path(path)
		if path.is_dir():
			path = path / self.filename
		if path.exists() and path.read_text() == self.code:
			return False
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_text(self.code)
		logger.info("Wrote %s", path)
		return True


def render_module(module: str, build: BuildContext, compiled: list[CompiledComponent]) -> str:
	signatures = [emit(c.signature) for c in compiled if c.signature is not None]
	blocks = ["\n".join(emit(s) for s in c.statements) for c in compiled]
	return MODULE_TEMPLATE.render(
		module=module,
		imports=render_imports(build.used_imports()),
		signatures=signatures,
		components=blocks,
	)


def _compile(
	module: str, components: list[Component], options: CompileOptions | None
) -> CompiledModule:
	build = BuildContext(module, options if options is not None else CompileOptions())
	compiled = [c.compile(build) for c in components]
	code = render_module(module, build, compiled)
	logger.debug(
		"Compiled %s: %d components, %d diagnostics",
		module,
		len(compiled),
		len(build.diagnostics),
	)
	return CompiledModule(module, code, list(build.diagnostics), components)


def compile_component(
	component: Component, options: CompileOptions | None = None
) -> CompiledModule:
	"""Compile a single component into its own module."""
	return _compile(component.module, [component], options)


def compile_module(
	module: ModuleType | str, options: CompileOptions | None = None
) -> CompiledModule:
	"""Compile every component defined in `module`, in definition order."""
	if isinstance(module, str):
		module = importlib.import_module(module)
	components = module_components(module.__name__)
	if not components:
		logger.warning("No components found in %s", module.__name__)
	return _compile(module.__name__, components, options)
