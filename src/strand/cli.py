"""
Command-line interface for strand.
Compiles Python component modules to JavaScript and reports missed optimizations.
"""
# typer relies on function calls used as default values
# pyright: reportCallInDefaultInitializer=false

from __future__ import annotations

import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from strand.codegen import CompiledModule, compile_module
from strand.config import CompileOptions
from strand.context import Diagnostic
from strand.errors import TranspileError
from strand.version import __version__

cli = typer.Typer(
	name="strand",
	help="strand - React function components written in Python, compiled to JavaScript",
	no_args_is_help=True,
)

console = Console(stderr=True)


def load_module(target: str) -> ModuleType:
	"""Import TARGET, a path to a .py file or a dotted module name."""
	path = Path(target)
	if target.endswith(".py") or path.exists():
		if not path.is_file():
			raise FileNotFoundError(f"File not found: {path}")
		name = path.stem
		parent = str(path.parent.absolute())
		if parent not in sys.path:
			sys.path.insert(0, parent)
		spec = importlib.util.spec_from_file_location(name, path)
		if spec is None or spec.loader is None:
			raise RuntimeError(f"Unable to load module from {path}")
		module = importlib.util.module_from_spec(spec)
		# Registered so inspect can find the source of its components
		sys.modules[name] = module
		spec.loader.exec_module(module)
		return module
	return importlib.import_module(target)


def print_diagnostics(diagnostics: list[Diagnostic]) -> None:
	for diag in diagnostics:
		console.print(
			f"[yellow]⚠[/yellow] [bold]{escape(diag.location)}[/bold] {escape(diag.message)}"
		)
		if diag.preview:
			console.print(f"    [dim]{escape(diag.preview)}[/dim]")


def _build(target: str, options: CompileOptions) -> CompiledModule:
	try:
		module = load_module(target)
		return compile_module(module, options)
	except TranspileError as e:
		console.print(f"[red]❌ {escape(str(e))}[/red]")
		raise typer.Exit(1) from None
	except (ImportError, FileNotFoundError) as e:
		console.print(f"[red]❌ Could not load {escape(target)}: {escape(str(e))}[/red]")
		raise typer.Exit(1) from None


@cli.callback()
def setup(
	verbose: bool = typer.Option(False, "--verbose", "-v", help="Log compilation details"),
):
	logging.basicConfig(
		level=logging.DEBUG if verbose else logging.ERROR,
		format="%(message)s",
		handlers=[RichHandler(console=console, show_path=False)],
	)


@cli.command("compile")
def compile_(
	target: str = typer.Argument(..., help="Path to a .py file or a dotted module name"),
	out: Path | None = typer.Option(
		None, "--out", "-o", help="Output file or directory (default: stdout)"
	),
	debug: bool | None = typer.Option(
		None,
		"--debug/--release",
		help="Emit hot-reload and display-name code (default: from STRAND_ENV/STRAND_DEBUG)",
	),
	debug_guard: str | None = typer.Option(
		None, "--debug-guard", help="JS expression gating debug code, e.g. import.meta.env.DEV"
	),
	warn_dynamic: bool | None = typer.Option(
		None,
		"--warn-dynamic/--no-warn-dynamic",
		help="Report element props that fall back to runtime dispatch",
	),
):
	"""Compile the components of a module to a JavaScript module."""
	options = CompileOptions.from_env(
		debug=debug, debug_guard=debug_guard, warn_dynamic_props=warn_dynamic
	)
	result = _build(target, options)
	print_diagnostics(result.diagnostics)

	if out is None:
		typer.echo(result.code, nl=False)
		return
	written = result.write(out)
	count = len(result.components)
	if written:
		console.print(f"✅ Compiled {count} component(s) from {escape(result.module)}")
	else:
		console.print(f"[dim]Up to date: {count} component(s) from {escape(result.module)}[/dim]")


@cli.command("check")
def check(
	target: str = typer.Argument(..., help="Path to a .py file or a dotted module name"),
	strict: bool = typer.Option(
		False, "--strict", help="Exit with status 1 when any missed optimization is found"
	),
):
	"""Compile a module without writing output and list missed optimizations."""
	options = CompileOptions.from_env(warn_dynamic_props=True)
	result = _build(target, options)
	print_diagnostics(result.diagnostics)

	count = len(result.diagnostics)
	if count == 0:
		console.print(
			f"✅ {len(result.components)} component(s) in {escape(result.module)}: no dynamic props"
		)
		return
	console.print(f"⚠️  {count} missed optimization(s) in {escape(result.module)}")
	if strict:
		raise typer.Exit(1)


@cli.command("version")
def version():
	"""Print the strand version."""
	typer.echo(__version__)


def main():
	"""Main CLI entry point."""
	try:
		cli()
	except Exception:
		console.print_exception()
		raise typer.Exit(1) from None


if __name__ == "__main__":
	main()
