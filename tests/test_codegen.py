"""
End-to-end module compilation: a component module is written to disk,
imported like an application module and rendered to a JS module.
"""

import logging
import textwrap
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

import pytest
from strand.cli import load_module
from strand.codegen import compile_component, compile_module
from strand.component import COMPONENTS
from strand.config import CompileOptions
from strand.hot_reload import HOT_RELOAD_REGISTRY

RELEASE = CompileOptions(debug=False)
DEBUG = CompileOptions(debug=True)

WIDGETS = """
from strand import Import, component, dom, h

useState = Import("useState", "react")


@component
def Badge(*, label: str):
	return dom.span({"class": "badge"}, label)


@component
def Panel(props):
	\"\"\"A panel.\"\"\"
	count, set_count = useState(0)
	return h("section", None, h(Badge, {"label": props.title}), count)
"""

HELLO = """
from strand import component, h


@component
def Hello(*, name: str):
	return h("p", None, name)
"""

Loader = Callable[[str, str], ModuleType]


@pytest.fixture
def load(tmp_path: Path) -> Loader:
	def loader(name: str, source: str) -> ModuleType:
		path = tmp_path / f"{name}.py"
		path.write_text(textwrap.dedent(source))
		return load_module(str(path))

	return loader


class TestCompileModule:
	def test_release_module(self, load: Loader):
		module = load("widgets_release", WIDGETS)
		result = compile_module(module, RELEASE)
		assert result.filename == "widgets_release.js"
		assert [c.name for c in result.components] == ["Badge", "Panel"]
		assert result.diagnostics == []
		assert result.code == (
			"// Generated by strand from widgets_release. Do not edit.\n"
			'import { extractProps } from "@strand/runtime";\n'
			'import { createElement, useState } from "react";\n'
			"\n"
			"function Badge_render($props, $ref) {\n"
			"let {label} = extractProps($props);\n"
			'return createElement("span", {"className": "badge"}, label);\n'
			"}\n"
			"export const Badge = Badge_render;\n"
			"\n"
			"function Panel_render($props, $ref) {\n"
			"let props = extractProps($props);\n"
			"let [count, set_count] = useState(0);\n"
			'return createElement("section", null, createElement(Badge, {"label": props.title}), count);\n'
			"}\n"
			"/** A panel. */\n"
			"export const Panel = Panel_render;\n"
		)

	def test_debug_module(self, load: Loader):
		module = load("hello_debug", HELLO)
		result = compile_module(module, DEBUG)
		assert result.code == (
			"// Generated by strand from hello_debug. Do not edit.\n"
			'import { extractProps, createSignature, register } from "@strand/runtime";\n'
			'import { createElement } from "react";\n'
			"\n"
			"const Hello_sig = createSignature();\n"
			"\n"
			"function Hello_render($props, $ref) {\n"
			"if (Hello_sig) {\n"
			"Hello_sig();\n"
			"}\n"
			"let {name} = extractProps($props);\n"
			'return createElement("p", null, name);\n'
			"}\n"
			"export const Hello = Hello_render;\n"
			'Hello.displayName = "hello_debug:Hello";\n'
			'Hello_sig(Hello, "", null, null);\n'
			'register(Hello, "hello_debug:Hello");\n'
		)
		assert "hello_debug:Hello" in HOT_RELOAD_REGISTRY

	def test_by_module_name(self, load: Loader):
		load("hello_by_name", HELLO)
		result = compile_module("hello_by_name", RELEASE)
		assert result.module == "hello_by_name"
		assert [c.name for c in result.components] == ["Hello"]

	def test_single_component(self, load: Loader):
		module = load("widgets_single", WIDGETS)
		result = compile_component(module.Badge, RELEASE)
		assert [c.name for c in result.components] == ["Badge"]
		assert "Panel" not in result.code
		assert 'import { createElement } from "react";' in result.code

	def test_diagnostics_are_collected(self, load: Loader):
		source = """
		from strand import component, h


		@component
		def Loose(props):
			return h("div", props.extra)
		"""
		module = load("loose", source)
		result = compile_module(module, RELEASE)
		assert 'return dynamicElement("div", props.extra);' in result.code
		[diag] = result.diagnostics
		assert diag.location == "loose:7"
		assert diag.message.endswith("inferred type of arg props.extra was unknown")

	def test_empty_module_warns(self, load: Loader, caplog: pytest.LogCaptureFixture):
		module = load("empty_module", "VALUE = 1\n")
		with caplog.at_level(logging.WARNING, logger="strand.codegen"):
			result = compile_module(module, RELEASE)
		assert result.components == []
		assert result.code == "// Generated by strand from empty_module. Do not edit.\n"
		assert "No components found in empty_module" in caplog.text


class TestReload:
	def test_reloading_replaces_components(self, load: Loader):
		load("reloaded", HELLO)
		first = COMPONENTS["reloaded:Hello"]
		compile_module("reloaded", DEBUG)

		changed = HELLO.replace(
			'return h("p", None, name)',
			'label, set_label = useState(name)\n\treturn h("p", None, label)',
		).replace("from strand import component, h", "from strand import Import, component, h\nuseState = Import('useState', 'react')")
		load("reloaded", changed)
		second = COMPONENTS["reloaded:Hello"]
		assert second is not first

		result = compile_module("reloaded", DEBUG)
		assert 'Hello_sig(Hello, "useState", null, null);' in result.code
		entry = HOT_RELOAD_REGISTRY.get("reloaded:Hello")
		assert entry is not None
		assert entry.component is second
		assert first.signature.fingerprint == ""


class TestWrite:
	def test_write_to_directory(self, load: Loader, tmp_path: Path):
		module = load("written", HELLO)
		result = compile_module(module, RELEASE)
		out = tmp_path / "web"
		out.mkdir()

		assert result.write(out) is True
		target = out / "written.js"
		assert target.read_text() == result.code
		assert result.write(out) is False

	def test_write_to_file_creates_parents(self, load: Loader, tmp_path: Path):
		module = load("written_file", HELLO)
		result = compile_module(module, RELEASE)
		target = tmp_path / "build" / "js" / "hello.js"
		assert result.write(target) is True
		assert target.read_text() == result.code
